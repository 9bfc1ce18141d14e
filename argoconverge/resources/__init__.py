from .base import BaseResource
from .service import ServiceResource
from .stateful_set import StatefulSetResource
from .config_map import ConfigMapResource
from .role_binding import RoleBindingResource
from .route import RouteResource

__all__ = [
    "BaseResource",
    "ServiceResource",
    "StatefulSetResource",
    "ConfigMapResource",
    "RoleBindingResource",
    "RouteResource",
]
