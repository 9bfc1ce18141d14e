import logging
from typing import Any, Callable, List, Sequence
from argoconverge.utils.errors import MutationFailed

logger = logging.getLogger(__name__)

#: A mutation hook receives the request context and the object under
#: construction, changes the object in place and raises to report failure.
MutateFunc = Callable[[Any, Any], None]


def hook_name(hook: MutateFunc) -> str:
    return getattr(hook, "__name__", None) or repr(hook)


def apply_mutations(obj: Any, mutations: Sequence[MutateFunc], context: Any = None) -> Any:
    """Run every hook against `obj` in order.

    A failing hook does not stop the ones after it. When at least one hook
    failed, MutationFailed is raised after the last hook ran, carrying `obj`
    and every error.
    """
    errors: List[Exception] = []
    failed: List[str] = []
    for mutate in mutations or ():
        try:
            mutate(context, obj)
        except Exception as ex:
            name = hook_name(mutate)
            logger.debug(f"Mutation `{name}` could not be applied: {ex}")
            errors.append(ex)
            failed.append(name)
    if errors:
        raise MutationFailed(obj, errors, failed)
    return obj
