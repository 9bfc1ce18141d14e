from .argocd_spec import (
    ArgoCDHASpec,
    ArgoCDRedisSpec,
    ArgoCDRouteSpec,
    ArgoCDServerSpec,
    ArgoCDApplicationSetSpec,
    ArgoCDSpec,
)

__all__ = [
    "ArgoCDHASpec",
    "ArgoCDRedisSpec",
    "ArgoCDRouteSpec",
    "ArgoCDServerSpec",
    "ArgoCDApplicationSetSpec",
    "ArgoCDSpec",
]
