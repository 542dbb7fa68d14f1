"""Removal of the upgrade's drain label."""

import logging
import time

from .config import UpgradeSettings
from .control_plane import ControlPlaneApi
from .drain import fetch_cordon_drain_state
from .errors import UpgradeErrorKind, error_context
from .models import is_drained_with
from .polling import Sleep, poll_until

logger = logging.getLogger(__name__)


class UncordonController:
    """Removes the drain label placed by the upgrade once the node is drained."""

    def __init__(
        self,
        control_plane: ControlPlaneApi,
        settings: UpgradeSettings,
        sleep: Sleep = time.sleep,
    ):
        self.control_plane = control_plane
        self.settings = settings
        self.sleep = sleep

    def uncordon(self, node_id: str) -> None:
        """
        Remove our drain label and wait until the node no longer holds it.

        If the node is not drained under our label (still draining, cordoned
        by someone else, or already uncordoned) this returns without issuing
        any request.

        Args:
            node_id: Storage node id

        Raises:
            UpgradeError: If the node cannot be fetched or the removal fails
        """
        poll_until(
            lambda: self._remove_label(node_id),
            done=lambda removed: not removed,
            interval=self.settings.uncordon_poll_interval,
            sleep=self.sleep,
            description=f"drain label removal on node {node_id}",
        )

    def _remove_label(self, node_id: str) -> bool:
        label = self.settings.drain_label
        state = fetch_cordon_drain_state(self.control_plane, node_id)

        if not is_drained_with(state, label):
            return False

        with error_context(
            UpgradeErrorKind.STORAGE_NODE_UNCORDON, node_id=node_id, label=label
        ):
            self.control_plane.delete_node_cordon(node_id, label)

        logger.info(f"Removed drain label {label} from storage node {node_id}")
        return True
