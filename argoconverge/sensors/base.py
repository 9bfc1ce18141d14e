"""Base sensor classes for operator monitoring.

This module defines the base OperatorSensor class that provides lifecycle hooks
for monitoring operator events. All hooks are no-ops by default, allowing
subclasses to override only the events they care about.

The hook pattern:
- Hooks come in pairs: on_X_start() and on_X_complete()
- Start hooks return an optional state dict for tracking multi-phase operations
- Complete hooks receive the state dict from their corresponding start hook
- All hooks are optional - sensors only implement what they need
"""

from typing import Dict, List, Optional, Any
import logging

logger = logging.getLogger(__name__)


class OperatorSensor:
    """Base sensor class for operator monitoring.

    This class defines lifecycle hooks for two categories:
    1. Reconciliation lifecycle (one pass over an ArgoCD instance)
    2. Resource operations (store calls made while converging a child)

    All methods are no-ops by default. Subclasses override only the hooks
    they need to monitor.

    Example:
        class LoggingSensor(OperatorSensor):
            def on_reconcile_start(self, instance_name, namespace, generation, trigger_source):
                return {'start_time': time.time()}

            def on_reconcile_complete(self, instance_name, namespace, state, success, error=None):
                duration = time.time() - state['start_time']
                logger.info(f"Reconciled {instance_name} in {duration}s")
    """

    # =============================================================================
    # Reconciliation Lifecycle Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        instance_name: str,
        namespace: str,
        generation: int,
        trigger_source: str,
    ) -> Optional[Dict[str, Any]]:
        """Called when a reconciliation pass begins.

        Args:
            instance_name: ArgoCD instance name
            namespace: Kubernetes namespace
            generation: Resource generation number
            trigger_source: What triggered reconciliation (create, update, resume, timer, delete)

        Returns:
            Optional state dict passed to on_reconcile_complete
        """
        pass

    def on_reconcile_complete(
        self,
        instance_name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Called when a reconciliation pass completes.

        Args:
            instance_name: ArgoCD instance name
            namespace: Kubernetes namespace
            state: State dict returned from on_reconcile_start
            success: Whether reconciliation succeeded
            error: Exception if reconciliation failed
        """
        pass

    # =============================================================================
    # Resource Operation Hooks
    # =============================================================================

    def on_resource_sync_start(
        self,
        instance_name: str,
        component: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
    ) -> Optional[Dict[str, Any]]:
        """Called before a store call for a child resource.

        Args:
            instance_name: Owning ArgoCD instance name
            component: Component tag of the child (redis, server, ...)
            resource_name: Name of the child being synced
            namespace: Kubernetes namespace
            resource_type: Kind of the child (Service, ConfigMap, ...)

        Returns:
            Optional state dict passed to on_resource_sync_complete
        """
        pass

    def on_resource_sync_complete(
        self,
        instance_name: str,
        component: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        state: Optional[Dict[str, Any]],
        operation: str,
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Called after a store call for a child resource.

        Args:
            state: State dict returned from on_resource_sync_start
            operation: Store operation performed (create, update, delete)
            success: Whether the call succeeded
            error: Exception if the call failed
        """
        pass

    def on_resource_drift_detected(
        self,
        instance_name: str,
        component: str,
        resource_name: str,
        namespace: str,
        resource_type: str,
        drift_fields: List[str],
    ) -> None:
        """Called when a child differs from its desired state.

        Args:
            drift_fields: Paths of the fields that drifted
        """
        pass
