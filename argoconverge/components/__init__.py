from .base import BaseComponent
from .redis import RedisComponent
from .server import ServerComponent
from .applicationset import ApplicationSetComponent

__all__ = [
    "BaseComponent",
    "RedisComponent",
    "ServerComponent",
    "ApplicationSetComponent",
]
