"""Tests for DrainController."""

import httpx
import pytest
from unittest.mock import MagicMock

from dataplane_upgrade import (
    DrainController,
    RestControlPlaneApi,
    UpgradeError,
    UpgradeErrorKind,
)
from dataplane_upgrade.models import (
    CordonedState,
    DrainedState,
    DrainingState,
    StorageNode,
    StorageNodeSpec,
    UncordonedState,
)

LABEL = "mayastor-upgrade"


class TestDrainController:
    """Test cases for DrainController."""

    def test_uncordoned_node_is_drained(self, control_plane, settings, sleep, events):
        """A drain is issued, then waited on until the node is drained."""
        control_plane.add_node("node-1")
        controller = DrainController(control_plane, settings, sleep)

        controller.drain("node-1")

        assert events == [
            ("get_node", "node-1"),
            ("drain", "node-1", LABEL),
            ("get_node", "node-1"),
            ("get_node", "node-1"),
        ]
        assert sleep.calls == [5]
        assert isinstance(control_plane.states["node-1"], DrainedState)

    def test_already_drained_by_us(self, control_plane, settings, sleep, events):
        control_plane.add_node("node-1", DrainedState(drain_labels=[LABEL]))
        controller = DrainController(control_plane, settings, sleep)

        controller.drain("node-1")

        assert events == [("get_node", "node-1")]
        assert sleep.calls == []

    def test_waits_while_draining(self, control_plane, settings, sleep):
        control_plane.drain_polls = 3
        control_plane.add_node("node-1")
        controller = DrainController(control_plane, settings, sleep)

        controller.drain("node-1")

        assert sleep.calls == [5, 5, 5]

    @pytest.mark.parametrize(
        "state",
        [
            CordonedState(cordon_labels=["maintenance"]),
            DrainingState(drain_labels=["maintenance"]),
            DrainedState(drain_labels=["maintenance"]),
        ],
    )
    def test_foreign_cordon_gets_our_drain(self, control_plane, settings, sleep, events, state):
        """A cordon or drain held by another actor is not ours: we drain anyway."""
        control_plane.add_node("node-1", state)
        controller = DrainController(control_plane, settings, sleep)

        controller.drain("node-1")

        assert ("drain", "node-1", LABEL) in events
        final = control_plane.states["node-1"]
        assert isinstance(final, DrainedState)
        assert LABEL in final.drain_labels

    def test_custom_drain_label(self, control_plane, sleep, events):
        from dataplane_upgrade import UpgradeSettings

        settings = UpgradeSettings(_env_file=None, drain_label="rolling-upgrade")
        control_plane.add_node("node-1")

        DrainController(control_plane, settings, sleep).drain("node-1")

        assert ("drain", "node-1", "rolling-upgrade") in events

    def test_missing_node_spec(self, control_plane, settings, sleep):
        control_plane.add_node("node-1")
        control_plane.missing_spec.add("node-1")
        controller = DrainController(control_plane, settings, sleep)

        with pytest.raises(UpgradeError) as exc_info:
            controller.drain("node-1")

        assert exc_info.value.kind == UpgradeErrorKind.EMPTY_STORAGE_NODE_SPEC
        assert exc_info.value.context == {"node_id": "node-1"}

    def test_get_node_failure(self, settings, sleep):
        api = MagicMock()
        api.get_node.side_effect = httpx.ConnectError("connection refused")
        controller = DrainController(api, settings, sleep)

        with pytest.raises(UpgradeError) as exc_info:
            controller.drain("node-1")

        assert exc_info.value.kind == UpgradeErrorKind.GET_STORAGE_NODE
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    def test_drain_request_failure(self, settings, sleep):
        api = MagicMock()
        api.get_node.return_value = StorageNode(
            id="node-1", spec=StorageNodeSpec(cordon_drain_state=UncordonedState())
        )
        request = httpx.Request("PUT", "http://rest/v0/nodes/node-1/drain/x")
        api.put_node_drain.side_effect = httpx.HTTPStatusError(
            "conflict", request=request, response=httpx.Response(409, request=request)
        )
        controller = DrainController(api, settings, sleep)

        with pytest.raises(UpgradeError) as exc_info:
            controller.drain("node-1")

        assert exc_info.value.kind == UpgradeErrorKind.DRAIN_STORAGE_NODE
        assert exc_info.value.context["node_id"] == "node-1"
        assert exc_info.value.context["reason"] == "409 Conflict"
        api.put_node_drain.assert_called_once_with("node-1", LABEL)

    @pytest.mark.parametrize(
        "body",
        [
            {"text": "<html>proxy</html>"},
            {"json": {"id": "node-1", "spec": {"cordondrainstate": {"newstate": {}}}}},
        ],
    )
    def test_malformed_node_response(self, settings, sleep, body):
        api = RestControlPlaneApi(
            "http://rest:8081",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, **body)),
        )
        controller = DrainController(api, settings, sleep)

        with pytest.raises(UpgradeError) as exc_info:
            controller.drain("node-1")

        assert exc_info.value.kind == UpgradeErrorKind.GET_STORAGE_NODE
        assert exc_info.value.context["node_id"] == "node-1"
        assert "Invalid storage node response" in exc_info.value.context["reason"]
        assert sleep.calls == []
