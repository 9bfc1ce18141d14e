import kopf
import logging
import argoconverge.handlers.argocd as argocd  # noqa: F401
import argoconverge.handlers.probes as probes  # noqa: F401
from argoconverge.cluster import ClusterFeatures
from argoconverge.components import BaseComponent
from argoconverge.resources import BaseResource
from argoconverge.types.settings import Settings
from argoconverge.sensors import init_metrics_server, SensorDelegate, PrometheusMonitor
from argoconverge.utils.errors import StoreError
from kubernetes_asyncio import config
from kubernetes_asyncio.client.api_client import ApiClient


# Configure Kopf settings
@kopf.on.startup()
async def setup(
    settings: kopf.OperatorSettings, memo: kopf.Memo, logger: logging.Logger, **kwargs
):
    # Load Kubernetes config - try in-cluster first (for production), then local kubeconfig (for dev)
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        logger.info("In-cluster config not found, trying local kubeconfig")
        try:
            await config.load_kube_config()
            logger.info("Loaded local Kubernetes configuration")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    memo.conf = Settings()
    BaseComponent.conf = memo.conf

    # Create a shared ApiClient for all resources to prevent connection leaks
    shared_client = ApiClient()
    BaseResource.shared_api_client = shared_client
    BaseComponent.shared_api_client = shared_client
    logger.info("Shared Kubernetes API client initialized")

    # Initialize sensor infrastructure
    sensor_delegate = SensorDelegate()
    sensor_delegate.add(PrometheusMonitor())
    memo.sensor = sensor_delegate
    BaseComponent.sensor = sensor_delegate
    logger.info("Sensor infrastructure initialized with PrometheusMonitor")

    # Initialize Prometheus metrics server
    try:
        init_metrics_server(memo.conf)
    except Exception as e:
        logger.error(f"Failed to start metrics server: {e}")
        # Don't fail operator startup if metrics server fails
        logger.warning("Continuing without metrics server")

    memo.features = ClusterFeatures(api_client=shared_client, conf=memo.conf)
    try:
        await memo.features.refresh()
    except StoreError as e:
        # discovery is retried lazily on first use
        logger.warning(f"Cluster feature detection failed: {e}")

    if not memo.conf.cluster_config_namespaces:
        logger.info("No namespaces are allowed to host cluster scoped ArgoCD instances")

    # Limit the number of concurrent workers to prevent flooding the API
    settings.batching.worker_limit = 2

    # Disable posting events to the Kubernetes API for logging > Warning
    settings.posting.enabled = True
    settings.posting.level = logging.WARNING


@kopf.on.cleanup()
async def cleanup(logger: logging.Logger, **kwargs):
    """Cleanup handler for operator shutdown."""
    logger.info("Shutting down operator...")

    # Close the shared API client
    if BaseResource.shared_api_client:
        await BaseResource.shared_api_client.close()
        logger.info("Shared API client closed")

    logger.info("Operator shutdown complete")
