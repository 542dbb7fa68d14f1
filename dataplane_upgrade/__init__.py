"""Rolling upgrade of the storage data plane, one node at a time."""

from .cluster import KubeWorkloadApi, WorkloadApi
from .config import UpgradeSettings, get_settings
from .control_plane import ControlPlaneApi, RestControlPlaneApi
from .drain import DrainController
from .errors import UpgradeError, UpgradeErrorKind
from .models import (
    ControlPlaneComponent,
    CordonedState,
    DrainedState,
    DrainingState,
    NodeUpgradePhase,
    StorageNode,
    StorageNodeSpec,
    UncordonedState,
    UpgradeRun,
)
from .orchestrator import DataPlaneUpgrader, upgrade_data_plane
from .readiness import ReadinessVerifier
from .rebuild import RebuildWaiter
from .restart import PodRestarter
from .uncordon import UncordonController

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "upgrade_data_plane",
    "DataPlaneUpgrader",
    # Stages
    "ReadinessVerifier",
    "DrainController",
    "RebuildWaiter",
    "PodRestarter",
    "UncordonController",
    # Clients
    "WorkloadApi",
    "KubeWorkloadApi",
    "ControlPlaneApi",
    "RestControlPlaneApi",
    # Configuration and errors
    "UpgradeSettings",
    "get_settings",
    "UpgradeError",
    "UpgradeErrorKind",
    # Models
    "ControlPlaneComponent",
    "CordonedState",
    "DrainedState",
    "DrainingState",
    "NodeUpgradePhase",
    "StorageNode",
    "StorageNodeSpec",
    "UncordonedState",
    "UpgradeRun",
]
