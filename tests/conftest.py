"""Shared fixtures of the unit tests."""

import copy
import pytest
from tests.fakes import FakeStore


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def owner():
    """Body of an ArgoCD instance as kopf hands it over."""
    return {
        "apiVersion": "argoproj.io/v1beta1",
        "kind": "ArgoCD",
        "metadata": {"name": "cd1", "namespace": "ns1", "uid": "uid-cd1"},
        "spec": {},
    }


@pytest.fixture
def terminating_owner(owner):
    body = copy.deepcopy(owner)
    body["metadata"]["deletionTimestamp"] = "2024-01-01T00:00:00Z"
    return body
