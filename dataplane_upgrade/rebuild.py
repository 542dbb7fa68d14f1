"""Wait for volume rebuilds to finish."""

import logging
import time

from .config import UpgradeSettings
from .control_plane import ControlPlaneApi
from .errors import UpgradeErrorKind, error_context
from .polling import Sleep, poll_until

logger = logging.getLogger(__name__)


class RebuildWaiter:
    """Blocks until no rebuild is in progress anywhere in the cluster."""

    def __init__(
        self,
        control_plane: ControlPlaneApi,
        settings: UpgradeSettings,
        sleep: Sleep = time.sleep,
    ):
        self.control_plane = control_plane
        self.settings = settings
        self.sleep = sleep

    def wait_for_rebuild(self, node_id: str) -> None:
        """
        Sleep the grace period, then poll until no rebuild is running.

        Rebuilds started by the drain may take a while to show up, hence the
        grace period. Rebuild activity on any node blocks progress.

        Args:
            node_id: Node being upgraded (for logging only)

        Raises:
            UpgradeError: If volumes cannot be listed
        """
        self.sleep(self.settings.rebuild_grace_period)
        poll_until(
            lambda: self._is_rebuilding(node_id),
            done=lambda rebuilding: not rebuilding,
            interval=self.settings.rebuild_poll_interval,
            sleep=self.sleep,
            description="volume rebuilds",
        )

    def _is_rebuilding(self, node_id: str) -> bool:
        with error_context(UpgradeErrorKind.LIST_STORAGE_VOLUMES):
            rebuilding = self.control_plane.is_rebuilding()
        if rebuilding:
            logger.info(f"Waiting for volume rebuild to complete (node {node_id})")
        return rebuilding
