import os
from typing import Any, List

_TRUE, _FALSE = {"True", "true", "yes", "1"}, {"False", "false", "no", "0"}


def _getenv(name: str, *default: Any) -> Any:
    try:
        v = os.environ[name]
        if v in _TRUE:
            return True
        elif v in _FALSE:
            return False
        else:
            return v
    except KeyError:
        pass
    if default:
        return default[0]
    raise KeyError(name)


# ------------------------------------------------
# ---- Defaults and environment variables ----
# ------------------------------------------------

#: Value of the app.kubernetes.io/managed-by label stamped on every child
OPERATOR_NAME = str(_getenv("OPERATOR_NAME", "argocd-operator"))

#: Abort a converge when one or more mutation hooks fail
MUTATION_ERRORS_FATAL = bool(_getenv("MUTATION_ERRORS_FATAL", True))

#: Comma separated namespaces allowed to host cluster scoped instances ("*" for all)
CLUSTER_CONFIG_NAMESPACES = str(_getenv("ARGOCD_CLUSTER_CONFIG_NAMESPACES", ""))

#: Seconds of inactivity before a periodic full sync of an instance
RECONCILE_INTERVAL_SECONDS = float(_getenv("RECONCILE_INTERVAL_SECONDS", 180.0))

#: Seconds kopf waits before retrying a handler that hit a temporary store error
TEMPORARY_ERROR_DELAY_SECONDS = int(_getenv("TEMPORARY_ERROR_DELAY_SECONDS", 30))

#: Port redis listens on
REDIS_PORT = int(_getenv("REDIS_PORT", 6379))

#: Number of sentinels that must agree before a redis failover
REDIS_SENTINEL_QUORUM = int(_getenv("REDIS_SENTINEL_QUORUM", 2))

#: Port of the Prometheus /metrics endpoint
METRICS_PORT = int(_getenv("METRICS_PORT", 8000))


def split_list(value: str) -> List[str]:
    """Split a comma separated string, dropping blanks."""
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class Settings:
    """Operator settings"""

    operator_name: str = OPERATOR_NAME
    mutation_errors_fatal: bool = MUTATION_ERRORS_FATAL
    cluster_config_namespaces: List[str] = split_list(CLUSTER_CONFIG_NAMESPACES)
    reconcile_interval_seconds: float = RECONCILE_INTERVAL_SECONDS
    temporary_error_delay_seconds: int = TEMPORARY_ERROR_DELAY_SECONDS
    redis_port: int = REDIS_PORT
    redis_sentinel_quorum: int = REDIS_SENTINEL_QUORUM
    metrics_port: int = METRICS_PORT

    def __init__(
        self,
        *args,
        operator_name: str = None,
        mutation_errors_fatal: bool = None,
        cluster_config_namespaces: List[str] = None,
        reconcile_interval_seconds: float = None,
        temporary_error_delay_seconds: int = None,
        redis_port: int = None,
        redis_sentinel_quorum: int = None,
        metrics_port: int = None,
        **kwargs,
    ):
        if operator_name is not None:
            self.operator_name = operator_name

        if mutation_errors_fatal is not None:
            self.mutation_errors_fatal = mutation_errors_fatal

        if cluster_config_namespaces is not None:
            self.cluster_config_namespaces = list(cluster_config_namespaces)

        if reconcile_interval_seconds is not None:
            self.reconcile_interval_seconds = reconcile_interval_seconds

        if temporary_error_delay_seconds is not None:
            self.temporary_error_delay_seconds = temporary_error_delay_seconds

        if redis_port is not None:
            self.redis_port = redis_port

        if redis_sentinel_quorum is not None:
            self.redis_sentinel_quorum = redis_sentinel_quorum

        if metrics_port is not None:
            self.metrics_port = metrics_port

    def is_cluster_config_namespace(self, namespace: str) -> bool:
        """Return True if instances in `namespace` may manage cluster scoped resources."""
        namespaces = self.cluster_config_namespaces
        if not namespaces:
            return False
        if namespaces[0] == "*":
            return True
        return namespace in namespaces
