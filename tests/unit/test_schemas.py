"""Unit tests for the ArgoCD spec schema."""

import pytest
from marshmallow import ValidationError
from argoconverge.types.models import ArgoCDSpec
from argoconverge.types.schemas import ArgoCDSpecSchema


class TestArgoCDSpecSchema:
    def test_empty_spec(self):
        spec = ArgoCDSpecSchema().load({})
        assert isinstance(spec, ArgoCDSpec)
        assert not spec.ha_enabled
        assert spec.redis_remote is None
        assert spec.application_set is None
        assert spec.server.insecure is False
        assert not spec.server.route_enabled

    def test_full_spec(self):
        spec = ArgoCDSpecSchema().load(
            {
                "ha": {"enabled": True},
                "redis": {"remote": "redis:6379"},
                "server": {
                    "insecure": True,
                    "route": {
                        "enabled": True,
                        "path": "/argocd",
                        "labels": {"team": "a"},
                        "annotations": {"note": "b"},
                    },
                },
                "applicationSet": {"version": "v2.10.0"},
            }
        )
        assert spec.ha_enabled
        assert spec.redis_remote == "redis:6379"
        assert spec.server.insecure
        assert spec.server.route_enabled
        assert spec.server.route.path == "/argocd"
        assert spec.server.route.labels == {"team": "a"}
        assert spec.application_set.version == "v2.10.0"

    def test_unmanaged_sections_are_ignored(self):
        spec = ArgoCDSpecSchema().load({"controller": {"processors": {}}, "ha": {}})
        assert not hasattr(spec, "controller")
        assert spec.ha_enabled is False

    def test_invalid_values(self):
        with pytest.raises(ValidationError):
            ArgoCDSpecSchema().load({"server": {"insecure": "sometimes"}})

    def test_as_dict(self):
        spec = ArgoCDSpecSchema().load({"ha": {"enabled": True}})
        assert spec.as_dict()["ha"] == {"enabled": True}

    def test_route_maps_are_string_dicts(self):
        spec = ArgoCDSpecSchema().load(
            {"server": {"route": {"annotations": {"a": "1"}, "labels": None}}}
        )
        assert spec.server.route.annotations == {"a": "1"}
        assert spec.server.route.labels is None

        with pytest.raises(ValidationError) as excinfo:
            ArgoCDSpecSchema().load({"server": {"route": {"labels": {"team": 1}}}})
        assert "server" in excinfo.value.messages
