"""Owner references and parent lifecycle.

Children carry a controller owner reference to their ArgoCD instance so the
garbage collector removes them with it. The reference is written once, when
the child is created.
"""
import logging
from typing import Any, Dict, List, Mapping
from kubernetes_asyncio.client import CoreV1Api, V1OwnerReference
from argoconverge.utils.errors import NotFound, OwnerLinkError, classify_store_error
from argoconverge.utils.objects import deletion_timestamp, get_field, set_field

logger = logging.getLogger(__name__)


def _owner_field(owner: Any, dict_key: str, attr: str) -> Any:
    if isinstance(owner, Mapping):
        return get_field(owner, dict_key)
    return get_field(owner, attr)


class OwnerLinker:
    """Attach controller owner references and read owner lifecycle."""

    def owner_reference(self, owner: Any) -> Dict[str, Any]:
        """Describe the controller reference pointing at `owner`."""
        uid = _owner_field(owner, "metadata.uid", "metadata.uid")
        name = _owner_field(owner, "metadata.name", "metadata.name")
        api_version = _owner_field(owner, "apiVersion", "api_version")
        kind = _owner_field(owner, "kind", "kind")
        if not uid:
            raise OwnerLinkError(f"Owner `{name}` has no uid")
        if not (api_version and kind and name):
            raise OwnerLinkError(
                f"Owner `{name}` must carry apiVersion, kind and name"
            )
        return {
            "apiVersion": api_version,
            "kind": kind,
            "name": name,
            "uid": uid,
            "controller": True,
            "blockOwnerDeletion": True,
        }

    def attach(self, child: Any, owner: Any) -> None:
        """Make `owner` the controller of `child`.

        Raises OwnerLinkError if the owner lacks identity, lives in another
        namespace, or the child is already controlled by someone else.
        """
        ref = self.owner_reference(owner)
        owner_namespace = _owner_field(owner, "metadata.namespace", "metadata.namespace")
        child_namespace = get_field(child, "metadata.namespace")
        if owner_namespace and owner_namespace != child_namespace:
            raise OwnerLinkError(
                f"Cross-namespace owner references are disallowed: owner `{ref['name']}` "
                f"is in `{owner_namespace}`, child is in `{child_namespace}`"
            )

        as_dicts = isinstance(child, Mapping)
        key = "ownerReferences" if as_dicts else "owner_references"
        references: List[Any] = list(get_field(child, f"metadata.{key}") or [])

        for existing in references:
            existing_uid = get_field(existing, "uid")
            if get_field(existing, "controller") and existing_uid != ref["uid"]:
                raise OwnerLinkError(
                    f"Object is already owned by another {get_field(existing, 'kind')} "
                    f"controller `{get_field(existing, 'name')}`"
                )

        references = [r for r in references if get_field(r, "uid") != ref["uid"]]
        if as_dicts:
            references.append(ref)
        else:
            references.append(
                V1OwnerReference(
                    api_version=ref["apiVersion"],
                    kind=ref["kind"],
                    name=ref["name"],
                    uid=ref["uid"],
                    controller=True,
                    block_owner_deletion=True,
                )
            )
        set_field(child, f"metadata.{key}", references)

    def is_terminating(self, owner: Any) -> bool:
        """True when `owner` is marked for deletion."""
        return owner is not None and deletion_timestamp(owner) is not None


class OwnerLifecycle:
    """Parent lifecycle read straight off the owner body."""

    def __init__(self, linker: OwnerLinker = None):
        self.linker = linker or OwnerLinker()

    async def is_terminating(self, owner: Any) -> bool:
        return self.linker.is_terminating(owner)


class NamespaceLifecycle:
    """Parent lifecycle coupled to the namespace the owner lives in.

    The owner itself counts as terminating too.
    """

    def __init__(self, core_v1_api: CoreV1Api, linker: OwnerLinker = None):
        self.core_v1_api = core_v1_api
        self.linker = linker or OwnerLinker()

    async def is_terminating(self, owner: Any) -> bool:
        if self.linker.is_terminating(owner):
            return True
        namespace = _owner_field(owner, "metadata.namespace", "metadata.namespace")
        if not namespace:
            return False
        try:
            ns = await self.core_v1_api.read_namespace(name=namespace)
        except Exception as ex:
            error = classify_store_error(ex, "get", "Namespace", namespace, None)
            if isinstance(error, NotFound):
                # a namespace that is gone cannot host children anymore
                return True
            raise error from ex
        return deletion_timestamp(ns) is not None
