import kopf
from logging import Logger
from typing import Any, Dict, Mapping
from marshmallow import ValidationError
from argoconverge.cluster import ClusterFeatures
from argoconverge.components import (
    BaseComponent,
    RedisComponent,
    ServerComponent,
    ApplicationSetComponent,
)
from argoconverge.sensors.base import OperatorSensor
from argoconverge.types.models import ArgoCDSpec
from argoconverge.types.schemas import ArgoCDSpecSchema
from argoconverge.types.settings import RECONCILE_INTERVAL_SECONDS, Settings
from argoconverge.utils.errors import ConvergeError, convert_converge_error
from argoconverge.utils.helpers import utc_now

GROUP = "argoproj.io"
VERSION = "v1beta1"
PLURAL = "argocds"

COMPONENTS = (RedisComponent, ServerComponent, ApplicationSetComponent)


def get_sensor() -> OperatorSensor:
    """Sensor installed on startup, or a no-op one."""
    return BaseComponent.sensor or OperatorSensor()


def get_conf() -> Settings:
    return BaseComponent.conf or Settings()


async def synchronize(
    body: Mapping[str, Any],
    spec: Mapping[str, Any],
    name: str,
    namespace: str,
    logger: Logger,
    features: ClusterFeatures = None,
    trigger_source: str = "unknown",
) -> Dict[str, str]:
    """Converge every child of an ArgoCD instance, component by component.

    Returns the outcome of each child keyed by "Kind/name". The first failing
    child stops the pass; kopf retries it according to the error type.
    """
    conf = get_conf()
    sensor = get_sensor()
    generation = body.get("metadata", {}).get("generation", 0)
    sensor_state = sensor.on_reconcile_start(name, namespace, generation, trigger_source)
    success, error = False, None
    try:
        spec_model: ArgoCDSpec = ArgoCDSpecSchema().load(spec or {})
        outcomes = {}
        for component_cls in COMPONENTS:
            component = component_cls(
                body, spec_model, features=features, logger=logger, conf=conf
            )
            outcomes.update(await component.synchronize())
        success = True
        return {key: outcome.value for key, outcome in outcomes.items()}
    except ValidationError as ex:
        error = ex
        raise kopf.PermanentError(f"Invalid ArgoCD spec: {ex.messages}") from ex
    except ConvergeError as ex:
        error = ex
        logger.error(f"Reconciliation of ArgoCD `{name}` failed ({ex.reason}): {ex}")
        convert_converge_error(ex, delay=conf.temporary_error_delay_seconds)
    except Exception as ex:
        error = ex
        raise
    finally:
        sensor.on_reconcile_complete(name, namespace, sensor_state, success, error)


def get_features(memo: Any) -> ClusterFeatures:
    """Feature detection shared through the memo, or a fresh one."""
    features = getattr(memo, "features", None)
    if features is None:
        features = ClusterFeatures(api_client=BaseComponent.shared_api_client, conf=get_conf())
    return features


def instance_status(
    outcomes: Dict[str, str], namespace: str, features: ClusterFeatures
) -> Dict[str, Any]:
    return {
        "resources": outcomes,
        "clusterConfigNamespace": features.is_cluster_config_namespace(namespace),
        "lastUpdateTime": utc_now().isoformat(),
    }


@kopf.on.resume(GROUP, VERSION, PLURAL)
@kopf.on.create(GROUP, VERSION, PLURAL)
@kopf.on.update(GROUP, VERSION, PLURAL)
async def reconciliation(body, spec, name, namespace, logger, patch, memo, reason, **kwargs):
    """Reconcile ArgoCD instances."""
    features = get_features(memo)
    outcomes = await synchronize(
        body,
        spec,
        name,
        namespace,
        logger,
        features=features,
        trigger_source=reason.value,
    )
    patch.status.update(instance_status(outcomes, namespace, features))


@kopf.timer(GROUP, VERSION, PLURAL, initial_delay=5.0, idle=RECONCILE_INTERVAL_SECONDS)
async def reconcile(body, spec, name, namespace, logger, patch, memo, **kwargs):
    """Full sync."""
    features = get_features(memo)
    outcomes = await synchronize(
        body,
        spec,
        name,
        namespace,
        logger,
        features=features,
        trigger_source="timer",
    )
    if outcomes != (body.get("status") or {}).get("resources"):
        patch.status.update(instance_status(outcomes, namespace, features))


@kopf.on.delete(GROUP, VERSION, PLURAL)
async def on_delete(body, spec, name, namespace, logger, memo, **kwargs):
    """Remove the children of a terminating instance."""
    outcomes = await synchronize(
        body,
        spec,
        name,
        namespace,
        logger,
        features=get_features(memo),
        trigger_source="delete",
    )
    logger.info(f"ArgoCD `{name}` children removed: {', '.join(outcomes) or 'none'}")
