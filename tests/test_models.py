"""Tests for storage node models."""

import pytest

from dataplane_upgrade.models import (
    CordonedState,
    DrainedState,
    DrainingState,
    StorageNode,
    UncordonedState,
    UpgradeRun,
    NodeUpgradePhase,
    is_drained_with,
    is_draining_with,
    parse_cordon_drain_state,
)


class TestCordonDrainState:
    """Test parsing of the REST cordon/drain representation."""

    def test_missing_state_is_uncordoned(self):
        """No cordondrainstate means the node is schedulable."""
        assert isinstance(parse_cordon_drain_state(None), UncordonedState)
        assert isinstance(parse_cordon_drain_state({}), UncordonedState)

    def test_cordoned_state(self):
        state = parse_cordon_drain_state({"cordonedstate": {"cordonlabels": ["ops"]}})

        assert isinstance(state, CordonedState)
        assert state.cordon_labels == ["ops"]

    def test_draining_state(self):
        state = parse_cordon_drain_state(
            {"drainingstate": {"cordonlabels": [], "drainlabels": ["mayastor-upgrade"]}}
        )

        assert isinstance(state, DrainingState)
        assert state.drain_labels == ["mayastor-upgrade"]

    def test_drained_state(self):
        state = parse_cordon_drain_state(
            {"drainedstate": {"cordonlabels": ["ops"], "drainlabels": ["mayastor-upgrade"]}}
        )

        assert isinstance(state, DrainedState)
        assert state.cordon_labels == ["ops"]
        assert state.drain_labels == ["mayastor-upgrade"]

    def test_unknown_state_rejected(self):
        with pytest.raises(ValueError):
            parse_cordon_drain_state({"frozenstate": {}})

    def test_label_helpers_require_matching_variant(self):
        """Our label only counts on the matching state variant."""
        draining = DrainingState(drain_labels=["mayastor-upgrade"])
        drained = DrainedState(drain_labels=["mayastor-upgrade"])
        cordoned = CordonedState(cordon_labels=["mayastor-upgrade"])

        assert is_draining_with(draining, "mayastor-upgrade")
        assert not is_drained_with(draining, "mayastor-upgrade")
        assert is_drained_with(drained, "mayastor-upgrade")
        assert not is_draining_with(drained, "mayastor-upgrade")
        assert not is_drained_with(cordoned, "mayastor-upgrade")
        assert not is_drained_with(drained, "someone-else")


class TestStorageNode:
    """Test StorageNode construction from API responses."""

    def test_from_api_with_state(self):
        node = StorageNode.from_api(
            {
                "id": "node-1",
                "spec": {
                    "id": "node-1",
                    "grpcEndpoint": "10.0.0.1:10124",
                    "cordondrainstate": {
                        "drainingstate": {"cordonlabels": [], "drainlabels": ["x"]}
                    },
                },
                "state": {"status": "Online"},
            }
        )

        assert node.id == "node-1"
        assert isinstance(node.spec.cordon_drain_state, DrainingState)

    def test_from_api_without_state(self):
        node = StorageNode.from_api({"id": "node-1", "spec": {"id": "node-1"}})

        assert isinstance(node.spec.cordon_drain_state, UncordonedState)

    def test_from_api_without_spec(self):
        node = StorageNode.from_api({"id": "node-1"})

        assert node.spec is None


class TestUpgradeRun:
    def test_defaults(self):
        run = UpgradeRun(namespace="mayastor", from_version="1", to_version="2")

        assert run.current_phase == NodeUpgradePhase.PENDING
        assert run.pending_pods == []
        assert run.completed_nodes == []
        assert run.completed_at is None
