"""Unit tests for the field comparator."""

import copy
from kubernetes_asyncio.client import V1ConfigMap, V1ObjectMeta
from argoconverge.core.comparator import (
    FieldToCompare,
    copy_forward,
    update_if_changed,
    watch_fields,
)


def config_map(labels=None, data=None):
    return V1ConfigMap(metadata=V1ObjectMeta(name="cm", labels=labels), data=data)


class TestCopyForward:
    def test_equal_objects_do_not_change(self):
        existing = config_map({"a": "1"}, {"k": "v"})
        desired = config_map({"a": "1"}, {"k": "v"})
        assert copy_forward(watch_fields(existing, desired, ["metadata.labels", "data"])) == []
        assert not update_if_changed(watch_fields(existing, desired, ["data"]))

    def test_drift_is_copied_to_existing(self):
        existing = config_map({"a": "1"}, {"k": "old"})
        desired = config_map({"a": "1"}, {"k": "new"})
        changed = copy_forward(watch_fields(existing, desired, ["metadata.labels", "data"]))
        assert changed == ["data"]
        assert existing.data == {"k": "new"}

    def test_desired_is_never_modified(self):
        existing = config_map({"a": "1"}, {"k": "old"})
        desired = config_map({"a": "2"}, {"k": "new"})
        snapshot = copy.deepcopy(desired)
        copy_forward(watch_fields(existing, desired, ["metadata.labels", "data"]))
        assert desired.to_dict() == snapshot.to_dict()

        # values are copied, not shared
        existing.data["k"] = "mutated"
        assert desired.data == {"k": "new"}

    def test_second_pass_finds_nothing(self):
        existing = config_map({"a": "1"}, {"k": "old"})
        desired = config_map({"b": "2"}, {"k": "new"})
        fields = watch_fields(existing, desired, ["metadata.labels", "data"])
        assert update_if_changed(fields)
        assert not update_if_changed(fields)

    def test_missing_and_empty_are_equal(self):
        assert copy_forward(watch_fields(config_map(), config_map({}, {}), ["metadata.labels", "data"])) == []

    def test_key_order_does_not_matter(self):
        existing = config_map(data={"a": "1", "b": "2"})
        desired = config_map(data={"b": "2", "a": "1"})
        assert copy_forward(watch_fields(existing, desired, ["data"])) == []

    def test_extra_action_runs_once_per_drifted_field(self):
        existing = config_map({"a": "1"}, {"k": "old"})
        desired = config_map({"a": "1"}, {"k": "new"})
        calls = []
        fields = [
            FieldToCompare(existing, desired, "metadata.labels", lambda: calls.append("labels")),
            FieldToCompare(existing, desired, "data", lambda: calls.append("data")),
        ]
        copy_forward(fields)
        assert calls == ["data"]

    def test_dict_objects(self):
        existing = {"metadata": {"labels": {"a": "1"}}, "spec": {"tls": {"termination": "edge"}}}
        desired = {"metadata": {"labels": {"a": "1"}}, "spec": {"tls": {"termination": "passthrough"}}}
        assert copy_forward(watch_fields(existing, desired, ["metadata.labels", "spec.tls"])) == ["spec.tls"]
        assert existing["spec"]["tls"] == {"termination": "passthrough"}
