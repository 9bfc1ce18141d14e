import hashlib
import mmh3
import jsonpickle
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_resource_name(instance_name: str, component: str) -> str:
    """Deterministic child name derived from the owning instance and a component."""
    return f"{instance_name}-{component}"


def merge_maps(*maps: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Merge maps left to right into a new dict; later keys win.

    None of the inputs is modified.
    """
    merged = {}
    for m in maps:
        if m:
            merged.update(m)
    return merged


def prune(data: Any) -> Any:
    """Normalize a value for comparison.

    Models are turned into dicts, nulls are dropped from mappings and empty
    mappings or sequences collapse to None, matching how the API server
    stores objects.
    """
    if hasattr(data, "to_dict"):
        data = data.to_dict()
    if isinstance(data, Mapping):
        pruned = {key: prune(value) for key, value in data.items()}
        return {key: value for key, value in pruned.items() if value is not None} or None
    if isinstance(data, (list, tuple)):
        return [prune(item) for item in data] or None
    return data


def deep_equal(data1: Any, data2: Any) -> bool:
    """Structural equality.

    Mappings compare key by key regardless of insertion order, sequences
    compare element by element in order.
    """
    return prune(data1) == prune(data2)


def sort_dict_keys(d):
    """Recursively sort dictionary keys and handle nested structures.

    Args:
        d: Data structure (dict, list, or primitive type)

    Returns:
        Sorted version of the data structure
    """
    if isinstance(d, dict):
        return {key: sort_dict_keys(value) for key, value in sorted(d.items())}
    elif isinstance(d, list):
        return [sort_dict_keys(item) for item in d]
    else:
        return d


def canonicalize_dict(data) -> str:
    """
    Returns a canonical JSON representation of a dictionary.

    The JSON string uses sorted keys, which ensures that the representation
    of the dictionary remains consistent even when key order varies.
    """
    return jsonpickle.dumps(sort_dict_keys(data), unpicklable=False)


def compute_hash(data: Any) -> str:
    """Compute a short murmur3 + sha256 hash of a value."""
    if isinstance(data, str):
        _data = data
    else:
        _data = canonicalize_dict(prune(data))
    murmur_str = str(mmh3.hash128(_data))
    full_hash = hashlib.sha256(murmur_str.encode("utf-8")).hexdigest()
    # first 16 characters are enough for an annotation
    return full_hash[:16]
