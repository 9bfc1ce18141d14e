"""Unit tests for the converge state machine."""

import pytest
from unittest.mock import Mock
from kubernetes_asyncio.client import (
    V1LabelSelector,
    V1PodTemplateSpec,
    V1RoleRef,
    V1StatefulSetSpec,
)
from argoconverge.core import Converger, FieldToCompare, Outcome, ResourceRequest
from argoconverge.resources import (
    ConfigMapResource,
    RoleBindingResource,
    StatefulSetResource,
)
from argoconverge.sensors.base import OperatorSensor
from argoconverge.types.settings import Settings
from argoconverge.utils.errors import (
    MutationFailed,
    StoreRejected,
    StoreUnavailable,
)
from tests.fakes import api_error

NAME = "cd1-redis"


def redis_request(data=None, mutations=()):
    return ResourceRequest(
        instance_name="cd1",
        instance_namespace="ns1",
        component="redis",
        payload={"data": data or {"redis.conf": "port 6379"}},
        mutations=mutations,
    )


@pytest.fixture
def config_maps(store):
    return ConfigMapResource(api=store.api())


@pytest.fixture
def converger(config_maps, owner):
    return Converger(config_maps, owner=owner, conf=Settings(operator_name="argocd-operator"))


class TestConvergeScenario:
    """Create, no-op, drift and parent deletion of a single config map."""

    async def test_create_then_noop(self, store, converger):
        assert await converger.converge(redis_request()) == Outcome.CREATED

        created = store.get("config_map", "ns1", NAME)
        assert created.metadata.labels == {
            "app.kubernetes.io/name": "cd1",
            "app.kubernetes.io/part-of": "argocd",
            "app.kubernetes.io/managed-by": "argocd-operator",
            "app.kubernetes.io/component": "redis",
        }
        assert created.metadata.annotations == {
            "argocds.argoproj.io/name": "cd1",
            "argocds.argoproj.io/namespace": "ns1",
        }
        [ref] = created.metadata.owner_references
        assert ref.uid == "uid-cd1"
        assert ref.kind == "ArgoCD"
        assert ref.controller is True
        assert ref.block_owner_deletion is True

        store.calls.clear()
        assert await converger.converge(redis_request()) == Outcome.NOOP
        assert store.verbs() == ["read"]

    async def test_store_calls_carry_identity(self, store, converger):
        request = ResourceRequest(
            instance_name="cd1",
            instance_namespace="ns1",
            component="redis",
            payload={"data": {"k": "v"}},
        )
        assert await converger.converge(request) == Outcome.CREATED
        assert store.calls == [
            ("read", "config_map", NAME),
            ("create", "config_map", NAME),
        ]

    async def test_label_drift_is_updated(self, store, converger):
        await converger.converge(redis_request())
        live = store.get("config_map", "ns1", NAME)
        live.metadata.labels["app.kubernetes.io/component"] = "other"

        assert await converger.converge(redis_request()) == Outcome.UPDATED
        assert store.verbs()[-1] == "replace"
        updated = store.get("config_map", "ns1", NAME)
        assert updated.metadata.labels["app.kubernetes.io/component"] == "redis"
        # the owner reference written at creation survives the update
        assert updated.metadata.owner_references[0].uid == "uid-cd1"

        assert await converger.converge(redis_request()) == Outcome.NOOP

    async def test_data_drift_is_updated(self, store, converger):
        await converger.converge(redis_request())
        outcome = await converger.converge(redis_request(data={"redis.conf": "port 6380"}))
        assert outcome == Outcome.UPDATED
        assert store.get("config_map", "ns1", NAME).data == {"redis.conf": "port 6380"}

    async def test_terminating_owner_deletes_child(
        self, store, config_maps, converger, terminating_owner
    ):
        await converger.converge(redis_request())
        terminating = Converger(config_maps, owner=terminating_owner)
        store.calls.clear()

        assert await terminating.converge(redis_request()) == Outcome.DELETED
        assert store.get("config_map", "ns1", NAME) is None

        # deleting an absent child is still a success
        assert await terminating.converge(redis_request()) == Outcome.DELETED
        assert "read" not in store.verbs()

    async def test_missing_owner_creates_without_reference(self, store, config_maps):
        converger = Converger(config_maps)
        assert await converger.converge(redis_request()) == Outcome.CREATED
        assert store.get("config_map", "ns1", NAME).metadata.owner_references is None

    async def test_owner_without_uid_is_logged_and_created(self, store, config_maps, owner):
        del owner["metadata"]["uid"]
        logger = Mock()
        converger = Converger(config_maps, owner=owner, logger=logger)

        assert await converger.converge(redis_request()) == Outcome.CREATED
        assert store.get("config_map", "ns1", NAME).metadata.owner_references is None
        logger.error.assert_called_once()


class TestConvergeComparatorTable:
    async def test_custom_table_ignores_unlisted_fields(self, store, converger):
        await converger.converge(redis_request())
        store.get("config_map", "ns1", NAME).metadata.annotations["extra"] = "kept"

        def data_only(existing, desired):
            return [FieldToCompare(existing, desired, "data")]

        assert await converger.converge(redis_request(), fields=data_only) == Outcome.NOOP
        assert store.get("config_map", "ns1", NAME).metadata.annotations["extra"] == "kept"

    async def test_extra_action_runs_on_drift(self, store, converger):
        await converger.converge(redis_request())
        actions = []

        def with_action(existing, desired):
            return [
                FieldToCompare(existing, desired, "data", lambda: actions.append("data")),
                FieldToCompare(existing, desired, "metadata.labels", lambda: actions.append("labels")),
            ]

        outcome = await converger.converge(
            redis_request(data={"redis.conf": "changed"}), fields=with_action
        )
        assert outcome == Outcome.UPDATED
        assert actions == ["data"]

    async def test_drift_reported_to_sensor(self, store, config_maps, owner):
        sensor = Mock(spec=OperatorSensor)
        converger = Converger(config_maps, owner=owner, sensor=sensor)
        await converger.converge(redis_request())
        await converger.converge(redis_request(data={"redis.conf": "changed"}))

        sensor.on_resource_drift_detected.assert_called_once_with(
            "cd1", "redis", NAME, "ns1", "ConfigMap", ["data"]
        )
        operations = [
            call.args[6] for call in sensor.on_resource_sync_complete.call_args_list
        ]
        assert operations == ["create", "update"]


class TestConvergeImmutableFields:
    @staticmethod
    def binding_request(role: str) -> ResourceRequest:
        return ResourceRequest(
            instance_name="cd1",
            instance_namespace="ns1",
            component="applicationset-controller",
            payload={
                "role_ref": V1RoleRef(
                    api_group="rbac.authorization.k8s.io", kind="Role", name=role
                ),
                "subjects": [
                    {"kind": "ServiceAccount", "name": "argocd", "namespace": "ns1"}
                ],
            },
        )

    async def test_role_ref_drift_deletes_then_recreates(self, store, owner):
        converger = Converger(RoleBindingResource(api=store.api()), owner=owner)
        assert await converger.converge(self.binding_request("a")) == Outcome.CREATED

        assert await converger.converge(self.binding_request("b")) == Outcome.DELETED
        assert store.get("role_binding", "ns1", "cd1-applicationset-controller") is None
        assert "replace" not in store.verbs()

        assert await converger.converge(self.binding_request("b")) == Outcome.CREATED
        live = store.get("role_binding", "ns1", "cd1-applicationset-controller")
        assert live.role_ref.name == "b"

    async def test_subject_drift_is_updated(self, store, owner):
        converger = Converger(RoleBindingResource(api=store.api()), owner=owner)
        await converger.converge(self.binding_request("a"))
        live = store.get("role_binding", "ns1", "cd1-applicationset-controller")
        live.subjects = [{"kind": "ServiceAccount", "name": "intruder", "namespace": "ns1"}]

        assert await converger.converge(self.binding_request("a")) == Outcome.UPDATED
        live = store.get("role_binding", "ns1", "cd1-applicationset-controller")
        assert live.subjects[0]["name"] == "argocd"

    async def test_stateful_set_selector_drift_deletes(self, store, owner):
        def request(app: str) -> ResourceRequest:
            return ResourceRequest(
                instance_name="cd1",
                instance_namespace="ns1",
                component="redis-ha-server",
                payload={
                    "spec": V1StatefulSetSpec(
                        selector=V1LabelSelector(match_labels={"app": app}),
                        service_name="cd1-redis-ha",
                        template=V1PodTemplateSpec(),
                    )
                },
            )

        converger = Converger(StatefulSetResource(api=store.api()), owner=owner)
        assert await converger.converge(request("redis")) == Outcome.CREATED
        assert await converger.converge(request("redis")) == Outcome.NOOP
        assert await converger.converge(request("other")) == Outcome.DELETED

    async def test_update_refused_as_immutable_deletes(self, store, converger):
        await converger.converge(redis_request())
        store.fail(
            "replace",
            "config_map",
            api_error(422, "Invalid", "data: Forbidden: field is immutable when `immutable` is set"),
        )

        outcome = await converger.converge(redis_request(data={"redis.conf": "changed"}))
        assert outcome == Outcome.DELETED
        assert store.get("config_map", "ns1", NAME) is None


class TestConvergeFailures:
    async def test_mutation_failure_aborts(self, store, converger):
        def broken(context, obj):
            raise ValueError("boom")

        with pytest.raises(MutationFailed) as excinfo:
            await converger.converge(redis_request(mutations=[broken]))
        assert excinfo.value.reason == "mutation"
        assert store.calls == []

    async def test_mutation_failure_tolerated_when_not_fatal(self, store, config_maps, owner):
        def broken(context, obj):
            raise ValueError("boom")

        def tagged(context, obj):
            obj.metadata.labels["tagged"] = "yes"

        converger = Converger(
            config_maps, owner=owner, conf=Settings(mutation_errors_fatal=False)
        )
        outcome = await converger.converge(redis_request(mutations=[broken, tagged]))
        assert outcome == Outcome.CREATED
        assert store.get("config_map", "ns1", NAME).metadata.labels["tagged"] == "yes"

    async def test_get_failure_propagates(self, store, converger):
        store.fail("read", "config_map", api_error(503, "ServiceUnavailable"))
        with pytest.raises(StoreUnavailable) as excinfo:
            await converger.converge(redis_request())
        assert excinfo.value.reason == "get"
        assert store.verbs() == ["read"]

    async def test_create_failure_propagates(self, store, converger):
        store.fail("create", "config_map", api_error(403, "Forbidden"))
        with pytest.raises(StoreRejected) as excinfo:
            await converger.converge(redis_request())
        assert excinfo.value.reason == "create"
        assert excinfo.value.name == NAME

    async def test_update_failure_propagates(self, store, converger):
        await converger.converge(redis_request())
        store.fail("replace", "config_map", api_error(409, "Conflict"))
        with pytest.raises(StoreRejected) as excinfo:
            await converger.converge(redis_request(data={"redis.conf": "changed"}))
        assert excinfo.value.reason == "update"

    async def test_delete_failure_propagates(self, store, config_maps, converger, terminating_owner):
        await converger.converge(redis_request())
        store.fail("delete", "config_map", api_error(500, "InternalError"))
        with pytest.raises(StoreUnavailable) as excinfo:
            await Converger(config_maps, owner=terminating_owner).converge(redis_request())
        assert excinfo.value.reason == "delete"
