from typing import Any, Dict, List, Tuple
from kubernetes_asyncio.client import V1DeleteOptions, V1ObjectMeta
from kubernetes_asyncio.client.api_client import ApiClient
from argoconverge.common.models.labels import Labels
from argoconverge.core.comparator import FieldToCompare, watch_fields
from argoconverge.core.request import ResourceRequest, build
from argoconverge.types.settings import OPERATOR_NAME
from argoconverge.utils.errors import classify_store_error
from argoconverge.utils.helpers import deep_equal
from argoconverge.utils.objects import get_field, object_identity


class BaseResource:
    """Store client for one namespaced kind.

    Subclasses name the kubernetes_asyncio API class, the model and the
    resource name used in that API's method names, e.g. "config_map" for
    `read_namespaced_config_map`. Every store error is wrapped into a
    StoreError carrying the operation and object identity.
    """

    shared_api_client: ApiClient = None  # shared across all resources

    # These are defined by subclass
    KIND: str = None
    API_VERSION: str = None
    RESOURCE: str = None
    API = None
    MODEL = None

    #: Fields compared by default when looking for drift.
    WATCH_FIELDS: Tuple[str, ...] = ("metadata.labels", "metadata.annotations")

    #: Fields the API refuses to update in place.
    IMMUTABLE_FIELDS: Tuple[str, ...] = ()

    _api_client: ApiClient = None
    _api = None

    def __init__(self, api_client: ApiClient = None, api: Any = None):
        self._api_client = api_client
        self._api = api

    @property
    def api_client(self) -> ApiClient:
        if self._api_client is None:
            # Use the shared API client if available, otherwise create a new one
            if self.shared_api_client is not None:
                self._api_client = self.shared_api_client
            else:
                self._api_client = ApiClient()
        return self._api_client

    @property
    def api(self):
        if self._api is None:
            self._api = self.API(self.api_client)
        return self._api

    def new_object(
        self,
        name: str,
        namespace: str,
        labels: Dict[str, str],
        annotations: Dict[str, str],
        payload: Dict[str, Any],
    ) -> Any:
        """Bare object of this kind with the given identity and payload."""
        return self.MODEL(
            api_version=self.API_VERSION,
            kind=self.KIND,
            metadata=V1ObjectMeta(
                name=name,
                namespace=namespace,
                labels=labels,
                annotations=annotations,
            ),
            **payload,
        )

    def request(self, request: ResourceRequest, managed_by: str = OPERATOR_NAME) -> Any:
        """Desired object for `request`; raises MutationFailed on hook errors."""
        return build(request, self.new_object, managed_by=managed_by)

    def fields_to_compare(self, existing: Any, desired: Any) -> List[FieldToCompare]:
        return watch_fields(existing, desired, self.WATCH_FIELDS)

    def immutable_drift(self, existing: Any, desired: Any) -> bool:
        """True if any immutable field of `existing` differs from `desired`."""
        return any(
            not deep_equal(get_field(existing, path), get_field(desired, path))
            for path in self.IMMUTABLE_FIELDS
        )

    def _method(self, verb: str):
        return getattr(self.api, f"{verb}_namespaced_{self.RESOURCE}")

    async def _call(self, operation: str, obj_name: str, obj_namespace: str, method, **kwargs):
        try:
            return await method(**kwargs)
        except Exception as ex:
            raise classify_store_error(ex, operation, self.KIND, obj_name, obj_namespace) from ex

    async def get(self, name: str, namespace: str) -> Any:
        """Retrieve the latest state of an object; raises NotFound if absent."""
        return await self._call(
            "get", name, namespace, self._method("read"), name=name, namespace=namespace
        )

    async def create(self, obj: Any) -> Any:
        name, namespace = object_identity(obj)
        return await self._call(
            "create", name, namespace, self._method("create"), namespace=namespace, body=obj
        )

    async def update(self, obj: Any) -> Any:
        """Replace an object; `obj` must carry the resourceVersion it was read with."""
        name, namespace = object_identity(obj)
        return await self._call(
            "update",
            name,
            namespace,
            self._method("replace"),
            name=name,
            namespace=namespace,
            body=obj,
        )

    async def delete(self, name: str, namespace: str) -> None:
        """Delete an object; raises NotFound if absent."""
        await self._call(
            "delete",
            name,
            namespace,
            self._method("delete"),
            name=name,
            namespace=namespace,
            body=V1DeleteOptions(propagation_policy="Background"),
        )

    async def list(self, namespace: str, labels: Labels = None) -> List[Any]:
        """List objects of this kind in `namespace`, optionally filtered by labels."""
        result = await self._call(
            "list",
            None,
            namespace,
            self._method("list"),
            namespace=namespace,
            label_selector=labels.as_str() if labels else None,
        )
        return list(result.items or [])
