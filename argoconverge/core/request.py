from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional, Sequence
from argoconverge.common.models.labels import Labels, Annotations
from argoconverge.core.mutation import MutateFunc, apply_mutations
from argoconverge.types.settings import OPERATOR_NAME
from argoconverge.utils.helpers import generate_resource_name, merge_maps


class ResourceRequest(NamedTuple):
    """Everything needed to produce one desired child object."""

    #: Explicit object name; derived from instance and component when empty.
    name: str = ""
    #: Name of the owning ArgoCD instance.
    instance_name: str = ""
    #: Namespace of the owning instance; children live there too.
    instance_namespace: str = ""
    #: Component tag, e.g. "redis" or "server".
    component: str = ""
    #: Labels merged over the defaults.
    labels: Optional[Mapping[str, str]] = None
    #: Annotations merged over the defaults.
    annotations: Optional[Mapping[str, str]] = None
    #: Kind specific fields, passed as keyword arguments to the kind's model.
    payload: Optional[Mapping[str, Any]] = None
    #: Hooks applied in order to the freshly built object.
    mutations: Sequence[MutateFunc] = ()
    #: Opaque handle handed to every hook.
    context: Any = None

    def resource_name(self) -> str:
        if self.name:
            return self.name
        return generate_resource_name(self.instance_name, self.component)

    def object_labels(self, managed_by: str = OPERATOR_NAME) -> Dict[str, str]:
        defaults = Labels.for_cluster(self.instance_name, self.component, managed_by)
        return merge_maps(defaults.as_dict(), self.labels)

    def object_annotations(self) -> Dict[str, str]:
        defaults = Annotations.for_cluster(self.instance_name, self.instance_namespace)
        return merge_maps(defaults, self.annotations)


#: Builds a bare object of some kind from its identity and payload.
ObjectFactory = Callable[..., Any]


def build(
    request: ResourceRequest,
    new_object: ObjectFactory,
    managed_by: str = OPERATOR_NAME,
) -> Any:
    """Produce the desired object for `request`.

    `new_object` is called with name, namespace, labels, annotations and
    payload keyword arguments, then the request's mutations run over the
    result. Raises MutationFailed (carrying the object) if any hook failed.
    """
    obj = new_object(
        name=request.resource_name(),
        namespace=request.instance_namespace,
        labels=request.object_labels(managed_by),
        annotations=request.object_annotations(),
        payload=dict(request.payload or {}),
    )
    return apply_mutations(obj, request.mutations, request.context)
