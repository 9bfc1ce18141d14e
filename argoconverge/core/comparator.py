import copy
from typing import Any, Callable, List, NamedTuple, Optional, Sequence
from argoconverge.utils.helpers import deep_equal
from argoconverge.utils.objects import get_field, set_field


class FieldToCompare(NamedTuple):
    """One row of a comparator table.

    `path` is resolved on both objects. When the values differ the desired
    value is copied onto `existing` and `extra_action` runs right after.
    """

    existing: Any
    desired: Any
    path: str
    extra_action: Optional[Callable[[], None]] = None


def watch_fields(
    existing: Any, desired: Any, paths: Sequence[str]
) -> List[FieldToCompare]:
    """Comparator table over `paths` with no extra actions."""
    return [FieldToCompare(existing, desired, path) for path in paths]


def copy_forward(fields: Sequence[FieldToCompare]) -> List[str]:
    """Bring every drifted field of the existing objects in line with desired.

    Returns the drifted paths in table order. Desired objects are never
    modified; values are deep copied onto the existing side.
    """
    changed = []
    for field in fields:
        desired_value = get_field(field.desired, field.path)
        if deep_equal(get_field(field.existing, field.path), desired_value):
            continue
        set_field(field.existing, field.path, copy.deepcopy(desired_value))
        if field.extra_action is not None:
            field.extra_action()
        changed.append(field.path)
    return changed


def update_if_changed(fields: Sequence[FieldToCompare]) -> bool:
    """Copy forward drifted fields and report whether anything changed."""
    return bool(copy_forward(fields))
