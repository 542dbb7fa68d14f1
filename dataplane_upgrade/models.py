"""Storage node and upgrade run models."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field


class ControlPlaneComponent(str, Enum):
    """Control-plane component groups gating the upgrade."""

    CORE_AGENT = "core-agent"
    API_GATEWAY = "api-gateway"
    METADATA_STORE = "metadata-store"


class NodeUpgradePhase(str, Enum):
    """Stage of a single node's upgrade."""

    PENDING = "pending"
    DRAINING = "draining"
    WAITING_FOR_REBUILD = "waiting_for_rebuild"
    RESTARTING = "restarting"
    UNCORDONING = "uncordoning"
    VERIFYING_DATA_PLANE = "verifying_data_plane"
    VERIFYING_CONTROL_PLANE = "verifying_control_plane"
    COMPLETED = "completed"
    FAILED = "failed"


class UncordonedState(BaseModel):
    """Node is schedulable."""

    kind: Literal["uncordoned"] = "uncordoned"


class CordonedState(BaseModel):
    """Node is cordoned without a drain."""

    kind: Literal["cordoned"] = "cordoned"
    cordon_labels: list[str] = Field(default_factory=list)


class DrainingState(BaseModel):
    """Node drain is in progress."""

    kind: Literal["draining"] = "draining"
    cordon_labels: list[str] = Field(default_factory=list)
    drain_labels: list[str] = Field(default_factory=list)


class DrainedState(BaseModel):
    """Node drain has completed."""

    kind: Literal["drained"] = "drained"
    cordon_labels: list[str] = Field(default_factory=list)
    drain_labels: list[str] = Field(default_factory=list)


CordonDrainState = Annotated[
    Union[UncordonedState, CordonedState, DrainingState, DrainedState],
    Field(discriminator="kind"),
]

# Wire keys used by the control-plane REST API for the drain variants.
_DRAIN_STATES = (
    ("drainingstate", DrainingState),
    ("drainedstate", DrainedState),
)


def parse_cordon_drain_state(data: Optional[dict[str, Any]]) -> CordonDrainState:
    """
    Parse the REST representation of a node's cordon/drain state.

    Args:
        data: The ``cordondrainstate`` object, or None when the node is uncordoned

    Returns:
        The matching state variant

    Raises:
        ValueError: If the object holds no known state key
    """
    if not data:
        return UncordonedState()

    if "cordonedstate" in data:
        body = data["cordonedstate"] or {}
        return CordonedState(cordon_labels=body.get("cordonlabels", []))

    for key, model in _DRAIN_STATES:
        if key in data:
            body = data[key] or {}
            return model(
                cordon_labels=body.get("cordonlabels", []),
                drain_labels=body.get("drainlabels", []),
            )

    raise ValueError(f"Unknown cordon/drain state: {sorted(data)}")


def is_draining_with(state: CordonDrainState, label: str) -> bool:
    """Return True if the node is draining under the given label."""
    return isinstance(state, DrainingState) and label in state.drain_labels


def is_drained_with(state: CordonDrainState, label: str) -> bool:
    """Return True if the node is drained under the given label."""
    return isinstance(state, DrainedState) and label in state.drain_labels


class StorageNodeSpec(BaseModel):
    """Desired state of a storage node."""

    cordon_drain_state: CordonDrainState = Field(default_factory=UncordonedState)


class StorageNode(BaseModel):
    """Storage node as reported by the control plane."""

    id: str
    spec: Optional[StorageNodeSpec] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "StorageNode":
        """
        Build a node from a control-plane REST response body.

        Args:
            data: Decoded JSON node object

        Returns:
            StorageNode instance
        """
        spec_data = data.get("spec")
        spec = None
        if spec_data is not None:
            spec = StorageNodeSpec(
                cordon_drain_state=parse_cordon_drain_state(
                    spec_data.get("cordondrainstate")
                )
            )
        return cls(id=data["id"], spec=spec)


class UpgradeRun(BaseModel):
    """Progress of one data-plane upgrade invocation."""

    namespace: str
    from_version: str
    to_version: str
    pending_pods: list[str] = Field(default_factory=list)
    completed_nodes: list[str] = Field(default_factory=list)
    current_node: Optional[str] = None
    current_phase: NodeUpgradePhase = NodeUpgradePhase.PENDING
    started_at: datetime = Field(default_factory=datetime.utcnow)
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None
