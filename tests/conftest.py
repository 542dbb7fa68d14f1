"""Pytest configuration and fixtures for data-plane upgrade tests."""

import pytest

from dataplane_upgrade import UpgradeSettings

from .fakes import (
    TO_VERSION,
    VERSION_KEY,
    FakeControlPlaneApi,
    FakeWorkloadApi,
    RecordingSleep,
    make_pod,
)


@pytest.fixture
def settings():
    """Default upgrade settings, isolated from the environment."""
    return UpgradeSettings(_env_file=None)


@pytest.fixture
def events():
    """Shared call log across fakes."""
    return []


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def workloads(events):
    """Workload API with a healthy control plane at the target version."""
    api = FakeWorkloadApi(events)
    api.add_pod(make_pod("agent-core-0", "node-a", {"app": "agent-core", VERSION_KEY: TO_VERSION}))
    api.add_pod(make_pod("api-rest-0", "node-b", {"app": "api-rest", VERSION_KEY: TO_VERSION}))
    api.add_pod(make_pod("etcd-0", "node-c", {"app.kubernetes.io/name": "etcd"}))
    return api


@pytest.fixture
def control_plane(events):
    return FakeControlPlaneApi(events)
