from typing import Any, Dict
from kubernetes_asyncio.client import V1ServicePort, V1ServiceSpec
from argoconverge.components.base import BaseComponent
from argoconverge.core import Outcome, ResourceRequest
from argoconverge.mutations import with_annotations
from argoconverge.resources import RouteResource, ServiceResource

HTTP_PORT = 80
HTTPS_PORT = 443
SERVER_TARGET_PORT = 8080

TLS_TERMINATION_PASSTHROUGH = "passthrough"
TLS_TERMINATION_EDGE = "edge"
INSECURE_POLICY_REDIRECT = "Redirect"


class ServerComponent(BaseComponent):
    """API server of an ArgoCD instance and, on OpenShift, its route."""

    COMPONENT = "server"

    def service_request(self) -> ResourceRequest:
        return self.request(
            payload=dict(
                spec=V1ServiceSpec(
                    type="ClusterIP",
                    selector=self.selector(),
                    ports=[
                        V1ServicePort(
                            name="http",
                            port=HTTP_PORT,
                            target_port=SERVER_TARGET_PORT,
                            protocol="TCP",
                        ),
                        V1ServicePort(
                            name="https",
                            port=HTTPS_PORT,
                            target_port=SERVER_TARGET_PORT,
                            protocol="TCP",
                        ),
                    ],
                )
            )
        )

    def route_tls(self) -> Dict[str, Any]:
        """TLS of the route; the server terminates TLS itself unless insecure."""
        if self.spec.server.insecure:
            return {
                "termination": TLS_TERMINATION_EDGE,
                "insecureEdgeTerminationPolicy": INSECURE_POLICY_REDIRECT,
            }
        return {
            "termination": TLS_TERMINATION_PASSTHROUGH,
            "insecureEdgeTerminationPolicy": INSECURE_POLICY_REDIRECT,
        }

    def route_request(self) -> ResourceRequest:
        route = self.spec.server.route
        spec = {
            "to": {
                "kind": "Service",
                "name": self.request().resource_name(),
                "weight": 100,
            },
            "port": {"targetPort": "http" if self.spec.server.insecure else "https"},
            "tls": self.route_tls(),
            "wildcardPolicy": "None",
        }
        if route and route.path:
            spec["path"] = route.path
        mutations = []
        if route and route.annotations:
            mutations.append(with_annotations(route.annotations))
        return self.request(
            payload=dict(spec=spec),
            labels=route.labels if route else None,
            mutations=mutations,
        )

    async def synchronize(self) -> Dict[str, Outcome]:
        await self.converge(self.resource(ServiceResource), self.service_request())

        if not await self.features.route_api_available():
            if self.spec.server.route_enabled:
                self.logger.warning(
                    "Route requested for the server but the cluster does not serve "
                    "the route API, skipping it"
                )
            return self.outcomes

        routes = self.resource(RouteResource)
        if self.spec.server.route_enabled:
            await self.converge(routes, self.route_request())
        else:
            await self.remove(routes, self.route_request())
        return self.outcomes
