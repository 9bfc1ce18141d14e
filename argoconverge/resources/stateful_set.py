from kubernetes_asyncio.client import AppsV1Api, V1StatefulSet
from argoconverge.resources.base import BaseResource


class StatefulSetResource(BaseResource):
    """Stateful sets of an ArgoCD instance."""

    KIND = "StatefulSet"
    API_VERSION = "apps/v1"
    RESOURCE = "stateful_set"
    API = AppsV1Api
    MODEL = V1StatefulSet

    WATCH_FIELDS = (
        "metadata.labels",
        "metadata.annotations",
        "spec.replicas",
        "spec.template.metadata.labels",
        "spec.template.metadata.annotations",
        "spec.template.spec.containers",
        "spec.template.spec.service_account_name",
    )

    # anything else under spec can only be changed by recreating the set
    IMMUTABLE_FIELDS = (
        "spec.selector",
        "spec.service_name",
        "spec.volume_claim_templates",
    )
