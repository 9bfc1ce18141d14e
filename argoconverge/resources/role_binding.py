from kubernetes_asyncio.client import RbacAuthorizationV1Api, V1RoleBinding
from argoconverge.resources.base import BaseResource


class RoleBindingResource(BaseResource):
    """Role bindings of an ArgoCD instance.

    Kubernetes does not allow changing the role a binding refers to, so a
    different role_ref means the binding has to be recreated.
    """

    KIND = "RoleBinding"
    API_VERSION = "rbac.authorization.k8s.io/v1"
    RESOURCE = "role_binding"
    API = RbacAuthorizationV1Api
    MODEL = V1RoleBinding

    WATCH_FIELDS = ("subjects",)
    IMMUTABLE_FIELDS = ("role_ref",)
