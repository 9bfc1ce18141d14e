from kubernetes_asyncio.client import CoreV1Api, V1ConfigMap
from argoconverge.resources.base import BaseResource


class ConfigMapResource(BaseResource):
    """Config maps of an ArgoCD instance."""

    KIND = "ConfigMap"
    API_VERSION = "v1"
    RESOURCE = "config_map"
    API = CoreV1Api
    MODEL = V1ConfigMap

    WATCH_FIELDS = ("metadata.labels", "metadata.annotations", "data")
