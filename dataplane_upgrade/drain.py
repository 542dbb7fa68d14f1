"""Storage node drain."""

import logging
import time
from enum import Enum

from .config import UpgradeSettings
from .control_plane import ControlPlaneApi
from .errors import UpgradeError, UpgradeErrorKind, error_context
from .models import CordonDrainState, StorageNode, is_drained_with, is_draining_with
from .polling import Sleep, poll_until

logger = logging.getLogger(__name__)


class DrainProgress(str, Enum):
    """Outcome of one drain reconciliation step."""

    REQUESTED = "requested"
    DRAINING = "draining"
    DRAINED = "drained"


def fetch_cordon_drain_state(
    control_plane: ControlPlaneApi, node_id: str
) -> CordonDrainState:
    """
    Fetch a storage node's current cordon/drain state.

    Raises:
        UpgradeError: If the node cannot be fetched or has no spec
    """
    with error_context(UpgradeErrorKind.GET_STORAGE_NODE, node_id=node_id):
        node: StorageNode = control_plane.get_node(node_id)

    if node.spec is None:
        raise UpgradeError(UpgradeErrorKind.EMPTY_STORAGE_NODE_SPEC, node_id=node_id)

    return node.spec.cordon_drain_state


class DrainController:
    """Drives a storage node to drained under the upgrade's drain label."""

    def __init__(
        self,
        control_plane: ControlPlaneApi,
        settings: UpgradeSettings,
        sleep: Sleep = time.sleep,
    ):
        self.control_plane = control_plane
        self.settings = settings
        self.sleep = sleep

    def drain(self, node_id: str) -> None:
        """
        Drain a storage node and wait for the drain to complete.

        A drain is (re)issued whenever the node is not draining or drained
        under our label, including when another actor's drain is in place.

        Args:
            node_id: Storage node id

        Raises:
            UpgradeError: If the node cannot be fetched or the drain request fails
        """
        poll_until(
            lambda: self._reconcile(node_id),
            done=lambda progress: progress is DrainProgress.DRAINED,
            interval=self._interval,
            sleep=self.sleep,
            description=f"drain of node {node_id}",
        )

    def _interval(self, progress: DrainProgress) -> float:
        # A freshly issued drain is re-checked immediately.
        if progress is DrainProgress.DRAINING:
            return self.settings.drain_poll_interval
        return 0

    def _reconcile(self, node_id: str) -> DrainProgress:
        label = self.settings.drain_label
        state = fetch_cordon_drain_state(self.control_plane, node_id)

        if is_draining_with(state, label):
            logger.info(f"Waiting for storage node {node_id} drain to complete...")
            return DrainProgress.DRAINING

        if is_drained_with(state, label):
            logger.info(f"Drain completed for storage node {node_id}")
            return DrainProgress.DRAINED

        with error_context(UpgradeErrorKind.DRAIN_STORAGE_NODE, node_id=node_id):
            self.control_plane.put_node_drain(node_id, label)

        logger.info(f"Drain started for storage node {node_id} (label={label})")
        return DrainProgress.REQUESTED
