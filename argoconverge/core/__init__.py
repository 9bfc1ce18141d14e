from .mutation import MutateFunc, apply_mutations
from .request import ResourceRequest, build
from .comparator import FieldToCompare, copy_forward, update_if_changed, watch_fields
from .linker import OwnerLinker, OwnerLifecycle, NamespaceLifecycle
from .converge import Converger, Outcome

__all__ = [
    "MutateFunc",
    "apply_mutations",
    "ResourceRequest",
    "build",
    "FieldToCompare",
    "copy_forward",
    "update_if_changed",
    "watch_fields",
    "OwnerLinker",
    "OwnerLifecycle",
    "NamespaceLifecycle",
    "Converger",
    "Outcome",
]
