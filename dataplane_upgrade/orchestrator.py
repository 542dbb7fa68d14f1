"""Node-by-node data-plane upgrade."""

import logging
import time
from datetime import datetime
from typing import Optional

from kubernetes.client import V1Pod

from .cluster import KubeWorkloadApi, WorkloadApi, pod_name
from .config import UpgradeSettings, get_settings
from .control_plane import ControlPlaneApi, RestControlPlaneApi
from .drain import DrainController
from .errors import UpgradeError, UpgradeErrorKind, error_context
from .models import NodeUpgradePhase, UpgradeRun
from .polling import Sleep
from .readiness import ReadinessVerifier
from .rebuild import RebuildWaiter
from .restart import PodRestarter
from .uncordon import UncordonController

logger = logging.getLogger(__name__)


class DataPlaneUpgrader:
    """
    Upgrades data-plane pods one node at a time.

    For every pod still labelled with the source version, in listing order:
    1. Drain the storage node under the upgrade's drain label
    2. Wait for volume rebuilds to finish cluster-wide
    3. Delete the pod so it is recreated at the target version
    4. Remove the drain label
    5. Wait for the new data-plane pod to be ready
    6. Wait for the control plane to be ready

    Any failure stops the run. Nodes already processed stay upgraded and no
    rollback is attempted.
    """

    def __init__(
        self,
        workloads: WorkloadApi,
        control_plane: ControlPlaneApi,
        settings: UpgradeSettings,
        sleep: Sleep = time.sleep,
    ):
        """
        Initialize the upgrader.

        Args:
            workloads: Cluster workload API scoped to the storage namespace
            control_plane: Storage control-plane API
            settings: Upgrade settings
            sleep: Sleep function shared by every poll loop
        """
        self.workloads = workloads
        self.control_plane = control_plane
        self.settings = settings

        self.readiness = ReadinessVerifier(workloads, settings, sleep)
        self.drain_controller = DrainController(control_plane, settings, sleep)
        self.rebuild_waiter = RebuildWaiter(control_plane, settings, sleep)
        self.restarter = PodRestarter(workloads)
        self.uncordon_controller = UncordonController(control_plane, settings, sleep)

    def run(self, from_version: str, to_version: str) -> UpgradeRun:
        """
        Upgrade every data-plane pod at ``from_version`` to ``to_version``.

        Args:
            from_version: Version label of pods still to upgrade
            to_version: Version label the replacement pods must carry

        Returns:
            The completed run record

        Raises:
            UpgradeError: On the first failure of any stage
        """
        run = UpgradeRun(
            namespace=self.workloads.namespace,
            from_version=from_version,
            to_version=to_version,
        )

        # The control plane must already run the target version.
        self.readiness.wait_for_control_plane(to_version)

        pods = self._list_pending_pods(from_version)
        run.pending_pods = [pod_name(pod) for pod in pods]
        logger.info(
            f"Found {len(pods)} data-plane pod(s) to upgrade "
            f"from {from_version} to {to_version}"
        )

        for pod in pods:
            try:
                self._upgrade_pod(run, pod)
            except UpgradeError as e:
                run.current_phase = NodeUpgradePhase.FAILED
                run.error_message = str(e)
                run.completed_at = datetime.utcnow()
                raise

        run.current_node = None
        run.completed_at = datetime.utcnow()
        logger.info(
            f"Data-plane upgrade to {to_version} completed for "
            f"{len(run.completed_nodes)} node(s)"
        )
        return run

    def _list_pending_pods(self, from_version: str) -> list[V1Pod]:
        label_selector = self.settings.versioned_selector(
            self.settings.data_plane_label, from_version
        )
        with error_context(
            UpgradeErrorKind.LIST_PODS_WITH_LABEL,
            label=label_selector,
            namespace=self.workloads.namespace,
        ):
            return self.workloads.list_pods(label_selector)

    def _upgrade_pod(self, run: UpgradeRun, pod: V1Pod) -> None:
        node_name = self._node_name(pod)
        run.current_node = node_name

        logger.info(f"Upgrade starting for data-plane pod {pod_name(pod)} on node {node_name}")

        self._enter(run, NodeUpgradePhase.DRAINING)
        self.drain_controller.drain(node_name)

        self._enter(run, NodeUpgradePhase.WAITING_FOR_REBUILD)
        self.rebuild_waiter.wait_for_rebuild(node_name)

        self._enter(run, NodeUpgradePhase.RESTARTING)
        self.restarter.restart(node_name, pod)

        self._enter(run, NodeUpgradePhase.UNCORDONING)
        self.uncordon_controller.uncordon(node_name)

        self._enter(run, NodeUpgradePhase.VERIFYING_DATA_PLANE)
        self.readiness.wait_for_data_plane(node_name, run.to_version)

        self._enter(run, NodeUpgradePhase.VERIFYING_CONTROL_PLANE)
        self.readiness.wait_for_control_plane(run.to_version)

        self._enter(run, NodeUpgradePhase.COMPLETED)
        run.completed_nodes.append(node_name)

    def _node_name(self, pod: V1Pod) -> str:
        # Storage node ids match the Kubernetes node names.
        if pod.spec is None:
            raise UpgradeError(
                UpgradeErrorKind.EMPTY_POD_SPEC,
                name=pod_name(pod),
                namespace=self.workloads.namespace,
            )
        if not pod.spec.node_name:
            raise UpgradeError(
                UpgradeErrorKind.EMPTY_POD_NODE_NAME,
                name=pod_name(pod),
                namespace=self.workloads.namespace,
            )
        return pod.spec.node_name

    @staticmethod
    def _enter(run: UpgradeRun, phase: NodeUpgradePhase) -> None:
        run.current_phase = phase
        logger.info(f"Node {run.current_node}: {phase.value}")


def upgrade_data_plane(
    namespace: str,
    rest_endpoint: str,
    from_version: str,
    to_version: str,
    settings: Optional[UpgradeSettings] = None,
) -> UpgradeRun:
    """
    Upgrade the data plane by controlled restart of its pods.

    Args:
        namespace: Namespace holding the storage workloads
        rest_endpoint: Storage control-plane REST endpoint
        from_version: Version label of pods still to upgrade
        to_version: Target version label

    Returns:
        The completed run record

    Raises:
        UpgradeError: On the first failure of any stage
    """
    settings = settings or get_settings()

    workloads = KubeWorkloadApi(
        namespace,
        kubeconfig_path=settings.kubeconfig_path,
        context=settings.kube_context,
    )
    try:
        control_plane = RestControlPlaneApi(
            rest_endpoint,
            timeout=settings.rest_timeout_seconds,
            page_size=settings.volume_page_size,
        )
        try:
            upgrader = DataPlaneUpgrader(workloads, control_plane, settings)
            return upgrader.run(from_version, to_version)
        finally:
            control_plane.close()
    finally:
        workloads.close()
