from typing import Any, Dict, List
from kubernetes_asyncio.client import CustomObjectsApi
from argoconverge.common.models.labels import Labels
from argoconverge.resources.base import BaseResource
from argoconverge.utils.objects import object_identity


class RouteResource(BaseResource):
    """OpenShift routes, served through the custom objects API as plain dicts."""

    KIND = "Route"
    GROUP_NAME = "route.openshift.io"
    GROUP_VERSION = "v1"
    API_VERSION = f"{GROUP_NAME}/{GROUP_VERSION}"
    PLURAL_NAME = "routes"
    API = CustomObjectsApi

    # spec.host and spec.wildcardPolicy are defaulted by the router
    WATCH_FIELDS = (
        "metadata.labels",
        "metadata.annotations",
        "spec.to",
        "spec.port",
        "spec.tls",
        "spec.path",
    )

    def new_object(
        self,
        name: str,
        namespace: str,
        labels: Dict[str, str],
        annotations: Dict[str, str],
        payload: Dict[str, Any],
    ) -> Dict[str, Any]:
        return {
            "apiVersion": self.API_VERSION,
            "kind": self.KIND,
            "metadata": {
                "name": name,
                "namespace": namespace,
                "labels": labels,
                "annotations": annotations,
            },
            **payload,
        }

    def _coordinates(self, namespace: str) -> Dict[str, str]:
        return dict(
            group=self.GROUP_NAME,
            version=self.GROUP_VERSION,
            namespace=namespace,
            plural=self.PLURAL_NAME,
        )

    async def get(self, name: str, namespace: str) -> Dict[str, Any]:
        return await self._call(
            "get",
            name,
            namespace,
            self.api.get_namespaced_custom_object,
            name=name,
            **self._coordinates(namespace),
        )

    async def create(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        name, namespace = object_identity(obj)
        return await self._call(
            "create",
            name,
            namespace,
            self.api.create_namespaced_custom_object,
            body=obj,
            **self._coordinates(namespace),
        )

    async def update(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        name, namespace = object_identity(obj)
        return await self._call(
            "update",
            name,
            namespace,
            self.api.replace_namespaced_custom_object,
            name=name,
            body=obj,
            **self._coordinates(namespace),
        )

    async def delete(self, name: str, namespace: str) -> None:
        await self._call(
            "delete",
            name,
            namespace,
            self.api.delete_namespaced_custom_object,
            name=name,
            **self._coordinates(namespace),
        )

    async def list(self, namespace: str, labels: Labels = None) -> List[Dict[str, Any]]:
        result = await self._call(
            "list",
            None,
            namespace,
            self.api.list_namespaced_custom_object,
            label_selector=labels.as_str() if labels else None,
            **self._coordinates(namespace),
        )
        return list(result.get("items") or [])
