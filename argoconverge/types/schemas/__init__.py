from .argocd_spec import (
    ArgoCDHASpecSchema,
    ArgoCDRedisSpecSchema,
    ArgoCDRouteSpecSchema,
    ArgoCDServerSpecSchema,
    ArgoCDApplicationSetSpecSchema,
    ArgoCDSpecSchema,
)

__all__ = [
    "ArgoCDHASpecSchema",
    "ArgoCDRedisSpecSchema",
    "ArgoCDRouteSpecSchema",
    "ArgoCDServerSpecSchema",
    "ArgoCDApplicationSetSpecSchema",
    "ArgoCDSpecSchema",
]
