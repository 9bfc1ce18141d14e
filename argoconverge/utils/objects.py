"""Uniform access to kubernetes objects.

Built-in kinds are kubernetes_asyncio models (snake_case attributes), custom
objects are plain dicts (camelCase keys). The helpers below resolve dotted
paths on either so the rest of the code can treat them the same way.
"""
from typing import Any, Dict, Mapping, MutableMapping, Optional, Tuple


def _is_mapping(obj: Any) -> bool:
    return isinstance(obj, Mapping)


def get_field(obj: Any, path: str) -> Any:
    """Return the value at dotted `path`, or None if any step is missing."""
    value = obj
    for part in path.split("."):
        if value is None:
            return None
        if _is_mapping(value):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


def set_field(obj: Any, path: str, value: Any) -> None:
    """Set the value at dotted `path`.

    Missing intermediate mappings are created on dict objects. Models always
    carry their intermediate attributes, so a missing one there is an error.
    """
    *parents, leaf = path.split(".")
    target = obj
    for part in parents:
        if isinstance(target, MutableMapping):
            target = target.setdefault(part, {})
            if target is None:
                raise AttributeError(f"Cannot set `{path}`: `{part}` is null")
        else:
            child = getattr(target, part)
            if child is None:
                raise AttributeError(f"Cannot set `{path}`: `{part}` is null")
            target = child
    if isinstance(target, MutableMapping):
        target[leaf] = value
    else:
        setattr(target, leaf, value)


def object_identity(obj: Any) -> Tuple[Optional[str], Optional[str]]:
    """Return (name, namespace) of an object."""
    return get_field(obj, "metadata.name"), get_field(obj, "metadata.namespace")


def object_annotations(obj: Any) -> Dict[str, str]:
    return dict(get_field(obj, "metadata.annotations") or {})


def set_object_annotations(obj: Any, annotations: Dict[str, str]) -> None:
    set_field(obj, "metadata.annotations", annotations)


def deletion_timestamp(obj: Any) -> Any:
    """Deletion timestamp of a dict body or a model, None when not deleting."""
    if _is_mapping(obj):
        return get_field(obj, "metadata.deletionTimestamp")
    return get_field(obj, "metadata.deletion_timestamp")
