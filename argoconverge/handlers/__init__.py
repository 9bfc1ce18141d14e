from argoconverge.handlers import argocd, probes

__all__ = [
    "argocd",
    "probes",
]
