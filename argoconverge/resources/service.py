from kubernetes_asyncio.client import CoreV1Api, V1Service
from argoconverge.resources.base import BaseResource


class ServiceResource(BaseResource):
    """Services of an ArgoCD instance."""

    KIND = "Service"
    API_VERSION = "v1"
    RESOURCE = "service"
    API = CoreV1Api
    MODEL = V1Service

    # cluster_ip and friends are assigned by the API server, so the spec is
    # compared field by field rather than as a whole
    WATCH_FIELDS = (
        "metadata.labels",
        "metadata.annotations",
        "spec.selector",
        "spec.type",
        "spec.ports",
    )
