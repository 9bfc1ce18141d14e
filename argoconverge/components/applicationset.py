from typing import Dict
from kubernetes_asyncio.client import CoreV1Api, V1RoleRef
from argoconverge.components.base import BaseComponent
from argoconverge.core import NamespaceLifecycle, Outcome, ResourceRequest
from argoconverge.resources import RoleBindingResource

RBAC_API_GROUP = "rbac.authorization.k8s.io"


class ApplicationSetComponent(BaseComponent):
    """Permissions of the applicationset controller of an ArgoCD instance.

    The binding goes away with the instance namespace, not only with the
    instance.
    """

    COMPONENT = "applicationset-controller"

    def role_binding_request(self) -> ResourceRequest:
        resource_name = self.request().resource_name()
        return self.request(
            payload=dict(
                role_ref=V1RoleRef(
                    api_group=RBAC_API_GROUP, kind="Role", name=resource_name
                ),
                # subject models were renamed across client releases, dicts serialize the same
                subjects=[
                    {
                        "kind": "ServiceAccount",
                        "name": resource_name,
                        "namespace": self.namespace,
                    }
                ],
            )
        )

    def lifecycle(self) -> NamespaceLifecycle:
        return NamespaceLifecycle(CoreV1Api(self.api_client))

    async def synchronize(self) -> Dict[str, Outcome]:
        role_bindings = self.resource(RoleBindingResource)
        if self.spec.application_set is None:
            await self.remove(role_bindings, self.role_binding_request())
            return self.outcomes

        await self.converge(role_bindings, self.role_binding_request(), self.lifecycle())
        return self.outcomes
