"""Optional cluster APIs the operator adapts to."""
import logging
from typing import Set
from kubernetes_asyncio.client import ApisApi
from kubernetes_asyncio.client.api_client import ApiClient
from argoconverge.types.settings import Settings
from argoconverge.utils.errors import classify_store_error

logger = logging.getLogger(__name__)

ROUTE_GROUP_VERSION = "route.openshift.io/v1"
VERSION_GROUP_VERSION = "config.openshift.io/v1"


class ClusterFeatures:
    """Which optional APIs the cluster serves.

    Discovery runs on first use and again on every `refresh()`; the result is
    held per instance so tests and operators never share it by accident.
    """

    conf: Settings

    _api: ApisApi = None
    _group_versions: Set[str] = None

    def __init__(self, api_client: ApiClient = None, api: ApisApi = None, conf: Settings = None):
        self._api_client = api_client
        self._api = api
        self.conf = conf or Settings()

    @property
    def api(self) -> ApisApi:
        if self._api is None:
            self._api = ApisApi(self._api_client or ApiClient())
        return self._api

    async def refresh(self) -> Set[str]:
        """Re-read the group versions served by the cluster."""
        try:
            groups = await self.api.get_api_versions()
        except Exception as ex:
            raise classify_store_error(ex, "get", "APIGroupList", "apis", None) from ex
        self._group_versions = {
            version.group_version
            for group in groups.groups or []
            for version in group.versions or []
        }
        logger.info(
            f"Cluster features: route API {'found' if ROUTE_GROUP_VERSION in self._group_versions else 'not found'}, "
            f"version API {'found' if VERSION_GROUP_VERSION in self._group_versions else 'not found'}"
        )
        return self._group_versions

    async def ensure(self) -> Set[str]:
        if self._group_versions is None:
            await self.refresh()
        return self._group_versions

    async def has_api(self, group_version: str) -> bool:
        return group_version in await self.ensure()

    async def route_api_available(self) -> bool:
        return await self.has_api(ROUTE_GROUP_VERSION)

    async def version_api_available(self) -> bool:
        return await self.has_api(VERSION_GROUP_VERSION)

    def is_cluster_config_namespace(self, namespace: str) -> bool:
        return self.conf.is_cluster_config_namespace(namespace)
