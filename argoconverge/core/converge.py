import enum
import logging
from logging import Logger
from typing import Any, Callable, List, Optional
from argoconverge.core.comparator import FieldToCompare, copy_forward
from argoconverge.core.linker import OwnerLifecycle, OwnerLinker
from argoconverge.core.request import ResourceRequest
from argoconverge.sensors.base import OperatorSensor
from argoconverge.types.settings import Settings
from argoconverge.utils.errors import (
    ImmutableFieldConflict,
    MutationFailed,
    NotFound,
    OwnerLinkError,
)
from argoconverge.utils.objects import object_identity

#: Builds the comparator table for an (existing, desired) pair.
FieldsFactory = Callable[[Any, Any], List[FieldToCompare]]

#: True when existing and desired differ on a field that cannot be updated.
ImmutableCheck = Callable[[Any, Any], bool]


class Outcome(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    NOOP = "no-op"


class Converger:
    """Drive one child object toward the state described by a request.

    Every call re-reads the store and performs each store call at most once.
    Failures propagate as ConvergeError subclasses; the caller decides when
    to try again. Calls for the same object must not overlap.
    """

    def __init__(
        self,
        resource,
        owner: Any = None,
        lifecycle=None,
        linker: OwnerLinker = None,
        sensor: OperatorSensor = None,
        conf: Settings = None,
        logger: Logger = None,
    ):
        self.resource = resource
        self.owner = owner
        self.linker = linker or OwnerLinker()
        self.lifecycle = lifecycle or OwnerLifecycle(self.linker)
        self.sensor = sensor or OperatorSensor()
        self.conf = conf or Settings()
        self.logger = logger or logging.getLogger(__name__)

    async def converge(
        self,
        request: ResourceRequest,
        fields: Optional[FieldsFactory] = None,
        immutable: Optional[ImmutableCheck] = None,
    ) -> Outcome:
        fields = fields or self.resource.fields_to_compare
        immutable = immutable or self.resource.immutable_drift

        desired = self.request_desired(request)
        name, namespace = object_identity(desired)

        if await self.lifecycle.is_terminating(self.owner):
            self.logger.info(
                f"Owner of {self.resource.KIND} `{name}` is terminating, deleting it"
            )
            return await self.delete(request, name, namespace)

        try:
            existing = await self.resource.get(name, namespace)
        except NotFound:
            return await self.create(request, desired)

        if immutable(existing, desired):
            self.logger.info(
                f"Detected drift in immutable fields of {self.resource.KIND} `{name}`, "
                "deleting it so it can be recreated"
            )
            return await self.delete(request, name, namespace)

        drift = copy_forward(fields(existing, desired))
        if not drift:
            return Outcome.NOOP

        self.sensor.on_resource_drift_detected(
            request.instance_name,
            request.component,
            name,
            namespace,
            self.resource.KIND,
            drift,
        )
        try:
            await self.instrument(request, name, namespace, "update", self.resource.update(existing))
        except ImmutableFieldConflict:
            self.logger.info(
                f"Update of {self.resource.KIND} `{name}` touched an immutable field, "
                "deleting it so it can be recreated"
            )
            return await self.delete(request, name, namespace)
        self.logger.info(f"{self.resource.KIND} `{name}` updated ({', '.join(drift)})")
        return Outcome.UPDATED

    def request_desired(self, request: ResourceRequest) -> Any:
        """Build the desired object, tolerating hook failures if configured to."""
        try:
            return self.resource.request(request, managed_by=self.conf.operator_name)
        except MutationFailed as ex:
            if self.conf.mutation_errors_fatal:
                raise
            self.logger.warning(f"Continuing with partially mutated object: {ex}")
            return ex.resource

    async def create(self, request: ResourceRequest, desired: Any) -> Outcome:
        name, namespace = object_identity(desired)
        if self.owner is not None:
            try:
                self.linker.attach(desired, self.owner)
            except OwnerLinkError as ex:
                self.logger.error(
                    f"Failed to set owner reference for {self.resource.KIND} `{name}`: {ex}"
                )
        await self.instrument(request, name, namespace, "create", self.resource.create(desired))
        self.logger.info(f"{self.resource.KIND} `{name}` created")
        return Outcome.CREATED

    async def delete(self, request: ResourceRequest, name: str, namespace: str) -> Outcome:
        try:
            await self.instrument(request, name, namespace, "delete", self.resource.delete(name, namespace))
        except NotFound:
            return Outcome.DELETED
        self.logger.info(f"{self.resource.KIND} `{name}` deleted")
        return Outcome.DELETED

    async def instrument(self, request: ResourceRequest, name: str, namespace: str, operation: str, call):
        """Await a store call between sensor start and complete hooks."""
        sensor_state = self.sensor.on_resource_sync_start(
            request.instance_name, request.component, name, namespace, self.resource.KIND
        )
        error = None
        try:
            return await call
        except NotFound:
            raise
        except Exception as ex:
            error = ex
            raise
        finally:
            self.sensor.on_resource_sync_complete(
                request.instance_name,
                request.component,
                name,
                namespace,
                self.resource.KIND,
                sensor_state,
                operation,
                error is None,
                error,
            )
