"""Tests for RebuildWaiter."""

import httpx
import pytest
from unittest.mock import MagicMock

from dataplane_upgrade import RebuildWaiter, UpgradeError, UpgradeErrorKind


class TestRebuildWaiter:
    """Test waiting for cluster-wide rebuilds."""

    def test_grace_period_then_polls_until_clear(self, control_plane, settings, sleep):
        control_plane.rebuild_flags = [True, True, False]
        waiter = RebuildWaiter(control_plane, settings, sleep)

        waiter.wait_for_rebuild("node-1")

        assert control_plane.rebuild_checks == 3
        assert sleep.calls == [60, 10, 10]

    def test_no_rebuild_still_waits_grace_period(self, control_plane, settings, sleep):
        waiter = RebuildWaiter(control_plane, settings, sleep)

        waiter.wait_for_rebuild("node-1")

        assert control_plane.rebuild_checks == 1
        assert sleep.calls == [60]

    def test_grace_period_precedes_first_check(self, settings):
        calls = []
        api = MagicMock()
        api.is_rebuilding.side_effect = lambda: calls.append("check") or False

        waiter = RebuildWaiter(api, settings, lambda s: calls.append(("sleep", s)))
        waiter.wait_for_rebuild("node-1")

        assert calls == [("sleep", 60), "check"]

    def test_listing_failure(self, settings, sleep):
        api = MagicMock()
        api.is_rebuilding.side_effect = httpx.ReadTimeout("timed out")
        waiter = RebuildWaiter(api, settings, sleep)

        with pytest.raises(UpgradeError) as exc_info:
            waiter.wait_for_rebuild("node-1")

        assert exc_info.value.kind == UpgradeErrorKind.LIST_STORAGE_VOLUMES
        assert api.is_rebuilding.call_count == 1
