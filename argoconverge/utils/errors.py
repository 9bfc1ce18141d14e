import json
import asyncio
import aiohttp
import kopf
from typing import Any, List, Optional
from kubernetes_asyncio.client import ApiException

_NOT_FOUND = "notfound"
_FIELD_IS_IMMUTABLE = "field is immutable"

#: Status codes worth retrying on a later cycle
_TRANSIENT_STATUSES = (408, 429)


class ConvergeError(Exception):
    """Base error of a converge call.

    ``reason`` names the step that failed: mutation, get, create, update or delete.
    """

    reason: str = "unknown"


class MutationFailed(ConvergeError):
    """One or more mutation hooks raised while building a desired object.

    Every hook still ran; ``resource`` is the object with the effects of the
    hooks that succeeded.
    """

    reason = "mutation"

    def __init__(self, resource: Any, errors: List[Exception], hooks: List[str]):
        self.resource = resource
        self.errors = errors
        self.hooks = hooks
        details = "; ".join(
            f"{hook}: {error}" for hook, error in zip(hooks, errors)
        )
        super().__init__(
            f"one or more mutation functions could not be applied: {details}"
        )


class StoreError(ConvergeError):
    """A store call failed for a given object."""

    def __init__(
        self,
        operation: str,
        kind: str,
        name: str,
        namespace: str,
        cause: Optional[BaseException] = None,
    ):
        self.operation = operation
        self.kind = kind
        self.name = name
        self.namespace = namespace
        self.cause = cause
        message = f"{operation} {kind} `{name}` in `{namespace}` namespace failed"
        if cause is not None:
            message = f"{message}: {describe_error(cause)}"
        super().__init__(message)

    @property
    def reason(self) -> str:
        return self.operation


class NotFound(StoreError):
    """The object does not exist. Selects a branch, never a failure."""


class StoreUnavailable(StoreError):
    """The store could not be reached or asked us to come back later."""


class StoreRejected(StoreError):
    """The store refused the request."""


class ImmutableFieldConflict(StoreRejected):
    """The store refused an update touching a field it forbids changing in place."""


class OwnerLinkError(Exception):
    """An owner reference could not be attached to a child."""


def _error_body(ex: ApiException) -> dict:
    try:
        body = json.loads(ex.body) if ex.body else {}
    except (TypeError, ValueError):
        return {}
    return body if isinstance(body, dict) else {}


def not_found_error(ex: ApiException) -> bool:
    if not isinstance(ex, ApiException):
        return False
    return ex.status == 404 or _error_body(ex).get("reason", "").lower() == _NOT_FOUND


def immutable_field_error(ex: ApiException) -> bool:
    if not isinstance(ex, ApiException) or ex.status != 422:
        return False
    return _FIELD_IS_IMMUTABLE in _error_body(ex).get("message", "")


def describe_error(ex: BaseException) -> str:
    """Short human readable description of a store error."""
    if isinstance(ex, ApiException):
        error_msg = f"Kubernetes API error ({ex.status}): {ex.reason}"
        message = _error_body(ex).get("message")
        if message:
            error_msg = f"{error_msg} - {message}"
        return error_msg
    return f"{ex.__class__.__name__}: {ex}"


def classify_store_error(
    ex: BaseException, operation: str, kind: str, name: str, namespace: str
) -> StoreError:
    """Wrap an exception raised by the kubernetes client into a StoreError."""
    args = (operation, kind, name, namespace, ex)
    if isinstance(ex, ApiException):
        if not_found_error(ex):
            return NotFound(*args)
        if immutable_field_error(ex):
            return ImmutableFieldConflict(*args)
        if ex.status is None or ex.status >= 500 or ex.status in _TRANSIENT_STATUSES:
            return StoreUnavailable(*args)
        return StoreRejected(*args)
    if isinstance(ex, (aiohttp.ClientError, asyncio.TimeoutError)):
        return StoreUnavailable(*args)
    raise ex


def convert_converge_error(ex: Exception, delay: int = 30):
    """
    Convert a converge error to a Kopf-friendly exception.

    Args:
        ex: The error raised by a converge call
        delay: Seconds kopf waits before retrying a temporary error

    Raises:
        kopf.TemporaryError or kopf.PermanentError with serializable error details
    """
    if isinstance(ex, StoreUnavailable):
        raise kopf.TemporaryError(str(ex), delay=delay)
    if isinstance(ex, (StoreRejected, MutationFailed)):
        raise kopf.PermanentError(str(ex))
    if isinstance(ex, StoreError):
        raise kopf.TemporaryError(str(ex), delay=delay)
    raise ex
