from typing import Dict


class ResourceLabels:
    KUBERNETES_DOMAIN = "app.kubernetes.io/"

    KUBERNETES_NAME_LABEL = KUBERNETES_DOMAIN + "name"

    KUBERNETES_PART_OF_LABEL = KUBERNETES_DOMAIN + "part-of"

    KUBERNETES_MANAGED_BY_LABEL = KUBERNETES_DOMAIN + "managed-by"

    KUBERNETES_COMPONENT_LABEL = KUBERNETES_DOMAIN + "component"

    APPLICATION_NAME = "argocd"


class Labels(ResourceLabels):
    """Label set of a child resource."""

    _labels: Dict[str, str]

    def __init__(self, labels: Dict[str, str] = None) -> None:
        self._labels = dict(labels) if labels else dict()

    def update(self, labels: Dict[str, str]) -> "Labels":
        self._labels.update(labels or {})
        return self

    def as_dict(self) -> Dict[str, str]:
        """Return labels as dictionary."""
        return self._labels.copy()

    def as_str(self):
        """Return labels as comma separated selector string."""
        return ",".join([f"{k}={v}" for k, v in self._labels.items()])

    def get(self, label: str, default: str = None) -> str:
        return self._labels.get(label, default)

    def include(self, label: str, value: str) -> "Labels":
        self.update({label: value})
        return self

    def include_kubernetes_name(self, name: str) -> "Labels":
        return self.include(self.KUBERNETES_NAME_LABEL, name)

    def include_kubernetes_part_of(self) -> "Labels":
        return self.include(self.KUBERNETES_PART_OF_LABEL, self.APPLICATION_NAME)

    def include_kubernetes_managed_by(self, operator_name: str) -> "Labels":
        return self.include(self.KUBERNETES_MANAGED_BY_LABEL, operator_name)

    def include_kubernetes_component(self, component: str) -> "Labels":
        return self.include(self.KUBERNETES_COMPONENT_LABEL, component)

    def selector(self) -> "Labels":
        """Labels that identify the pods of a component."""
        return Labels(
            {
                key: self._labels[key]
                for key in (self.KUBERNETES_NAME_LABEL, self.KUBERNETES_COMPONENT_LABEL)
                if key in self._labels
            }
        )

    def __str__(self):
        return f"Labels<{self._labels}>"

    @classmethod
    def for_cluster(
        cls, instance_name: str, component: str, managed_by: str
    ) -> "Labels":
        """Default labels of every child of an ArgoCD instance."""
        labels = Labels()
        return (
            labels.include_kubernetes_name(instance_name)
            .include_kubernetes_part_of()
            .include_kubernetes_managed_by(managed_by)
            .include_kubernetes_component(component)
        )


class Annotations:
    ARGOCD_DOMAIN = "argocds.argoproj.io/"

    ARGOCD_NAME_ANNOTATION = ARGOCD_DOMAIN + "name"

    ARGOCD_NAMESPACE_ANNOTATION = ARGOCD_DOMAIN + "namespace"

    RESOURCE_HASH_ANNOTATION = "argoproj.io/resource-hash"

    @classmethod
    def for_cluster(cls, instance_name: str, instance_namespace: str) -> Dict[str, str]:
        """Default annotations pointing a child back at its ArgoCD instance."""
        return {
            cls.ARGOCD_NAME_ANNOTATION: instance_name,
            cls.ARGOCD_NAMESPACE_ANNOTATION: instance_namespace,
        }
