"""Mutation hooks shared by the component reconcilers."""
from typing import Any, Dict, Mapping
from argoconverge.common.models.labels import Annotations
from argoconverge.core.mutation import MutateFunc
from argoconverge.utils.helpers import compute_hash, merge_maps
from argoconverge.utils.objects import (
    get_field,
    object_annotations,
    set_object_annotations,
)


def with_resource_hash(path: str) -> MutateFunc:
    """Stamp the hash of the value at `path` into the resource hash annotation.

    Raises ValueError if `path` holds nothing, so a broken desired object
    surfaces as a mutation failure instead of being hashed as empty.
    """

    def resource_hash(context: Any, obj: Any) -> None:
        value = get_field(obj, path)
        if value is None:
            raise ValueError(f"`{path}` is empty, nothing to hash")
        annotations = object_annotations(obj)
        annotations[Annotations.RESOURCE_HASH_ANNOTATION] = compute_hash(value)
        set_object_annotations(obj, annotations)

    return resource_hash


def with_annotations(extra: Mapping[str, str]) -> MutateFunc:
    """Merge `extra` over the annotations of the object."""

    def annotations(context: Any, obj: Any) -> None:
        merged: Dict[str, str] = merge_maps(object_annotations(obj), extra)
        set_object_annotations(obj, merged)

    return annotations
