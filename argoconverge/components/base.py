import logging
from logging import Logger
from typing import Any, Dict, Mapping, Optional, Sequence, Type
from kubernetes_asyncio.client.api_client import ApiClient
from argoconverge.cluster import ClusterFeatures
from argoconverge.common.models.labels import Labels
from argoconverge.core import Converger, MutateFunc, Outcome, ResourceRequest
from argoconverge.resources import BaseResource
from argoconverge.sensors.base import OperatorSensor
from argoconverge.types.models import ArgoCDSpec
from argoconverge.types.settings import Settings
from argoconverge.utils.objects import object_identity


class BaseComponent:
    """Reconciler for one component of an ArgoCD instance.

    Subclasses describe the children of their component as requests and
    hand them to a Converger; `synchronize` returns the outcome per child,
    keyed by "Kind/name".
    """

    # These are shared across all components, set on operator startup
    shared_api_client: ApiClient = None
    sensor: OperatorSensor = None
    conf: Settings = None

    # These are defined by subclass
    COMPONENT: str = None

    owner: Mapping[str, Any]
    spec: ArgoCDSpec
    name: str
    namespace: str
    features: ClusterFeatures
    logger: Logger
    outcomes: Dict[str, Outcome]

    def __init__(
        self,
        owner: Mapping[str, Any],
        spec: ArgoCDSpec,
        features: ClusterFeatures = None,
        logger: Logger = None,
        api_client: ApiClient = None,
        conf: Settings = None,
    ):
        self.owner = owner
        self.spec = spec
        self.name, self.namespace = object_identity(owner)
        self.conf = conf or self.conf or Settings()
        self._api_client = api_client
        self.features = features or ClusterFeatures(api_client=self.api_client, conf=self.conf)
        self.logger = logger or logging.getLogger(__name__)
        self.outcomes = {}

    @property
    def api_client(self) -> ApiClient:
        if self._api_client is None:
            self._api_client = self.shared_api_client or ApiClient()
        return self._api_client

    def resource(self, resource_cls: Type[BaseResource]) -> BaseResource:
        return resource_cls(api_client=self.api_client)

    def converger(self, resource: BaseResource, lifecycle=None) -> Converger:
        return Converger(
            resource,
            owner=self.owner,
            lifecycle=lifecycle,
            sensor=self.sensor,
            conf=self.conf,
            logger=self.logger,
        )

    def request(
        self,
        name: str = "",
        payload: Mapping[str, Any] = None,
        labels: Mapping[str, str] = None,
        annotations: Mapping[str, str] = None,
        mutations: Sequence[MutateFunc] = (),
    ) -> ResourceRequest:
        return ResourceRequest(
            name=name,
            instance_name=self.name,
            instance_namespace=self.namespace,
            component=self.COMPONENT,
            labels=labels,
            annotations=annotations,
            payload=payload,
            mutations=mutations,
            context=self,
        )

    def _record(self, resource: BaseResource, request: ResourceRequest, outcome: Outcome) -> Outcome:
        self.outcomes[f"{resource.KIND}/{request.resource_name()}"] = outcome
        return outcome

    async def converge(
        self, resource: BaseResource, request: ResourceRequest, lifecycle=None
    ) -> Outcome:
        outcome = await self.converger(resource, lifecycle).converge(request)
        return self._record(resource, request, outcome)

    async def remove(
        self, resource: BaseResource, request: ResourceRequest, lifecycle=None
    ) -> Outcome:
        """Delete the child described by `request`; absent children count as deleted."""
        outcome = await self.converger(resource, lifecycle).delete(
            request, request.resource_name(), self.namespace
        )
        return self._record(resource, request, outcome)

    async def synchronize(self) -> Dict[str, Outcome]:
        raise NotImplementedError()

    def selector(self, component: Optional[str] = None) -> Dict[str, str]:
        """Pod selector of a component of this instance."""
        labels = Labels.for_cluster(
            self.name, component or self.COMPONENT, self.conf.operator_name
        )
        return labels.selector().as_dict()
