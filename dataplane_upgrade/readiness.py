"""Readiness checks for the data-plane and control-plane pods."""

import logging
import time

from .cluster import WorkloadApi, all_pods_are_ready, pod_is_ready
from .config import UpgradeSettings
from .errors import UpgradeError, UpgradeErrorKind, error_context
from .models import ControlPlaneComponent
from .polling import Sleep, poll_until

logger = logging.getLogger(__name__)


class ReadinessVerifier:
    """
    Answers whether a component is running at a given version.

    Covers the data-plane pod on a single node and the three control-plane
    component groups (core agent, API gateway, metadata store).
    """

    def __init__(
        self,
        workloads: WorkloadApi,
        settings: UpgradeSettings,
        sleep: Sleep = time.sleep,
    ):
        """
        Initialize readiness verifier.

        Args:
            workloads: Cluster workload API
            settings: Upgrade settings
            sleep: Sleep function used between polls
        """
        self.workloads = workloads
        self.settings = settings
        self.sleep = sleep

    def data_plane_ready(self, node_name: str, version: str) -> bool:
        """
        Check whether the data-plane pod on a node is ready at a version.

        Args:
            node_name: Kubernetes node name
            version: Expected version label value

        Returns:
            False if no matching pod exists yet, else the pod's readiness

        Raises:
            UpgradeError: If listing fails or more than one pod matches
        """
        label_selector = self.settings.versioned_selector(
            self.settings.data_plane_label, version
        )
        field_selector = f"spec.nodeName={node_name}"

        with error_context(
            UpgradeErrorKind.LIST_PODS_WITH_LABEL_AND_FIELD,
            label=label_selector,
            field=field_selector,
            namespace=self.workloads.namespace,
        ):
            pods = self.workloads.list_pods(label_selector, field_selector)

        if not pods:
            return False

        if len(pods) != 1:
            raise UpgradeError(
                UpgradeErrorKind.TOO_MANY_DATA_PLANE_PODS,
                node_name=node_name,
                count=len(pods),
            )

        return pod_is_ready(pods[0])

    def control_plane_ready(self, version: str) -> bool:
        """
        Check whether all control-plane component groups are ready.

        The core agent and API gateway must run at ``version``; the metadata
        store is matched by role only since it is versioned separately.

        Args:
            version: Expected version label value

        Returns:
            True only if every group has pods and all of them are ready
        """
        ready = {
            component: self._component_ready(component, version)
            for component in ControlPlaneComponent
        }
        not_ready = [c.value for c, is_ready in ready.items() if not is_ready]
        if not_ready:
            logger.debug(f"Control-plane components not ready: {', '.join(not_ready)}")
        return not not_ready

    def _component_ready(self, component: ControlPlaneComponent, version: str) -> bool:
        if component is ControlPlaneComponent.CORE_AGENT:
            role_label = self.settings.core_agent_label
            selector = self.settings.versioned_selector(role_label, version)
        elif component is ControlPlaneComponent.API_GATEWAY:
            role_label = self.settings.api_gateway_label
            selector = self.settings.versioned_selector(role_label, version)
        else:
            role_label = self.settings.metadata_store_label
            selector = role_label

        with error_context(
            UpgradeErrorKind.LIST_PODS_WITH_LABEL,
            label=role_label,
            namespace=self.workloads.namespace,
        ):
            pods = self.workloads.list_pods(selector)

        return all_pods_are_ready(pods)

    def wait_for_data_plane(self, node_name: str, version: str) -> None:
        """Block until the data-plane pod on ``node_name`` is ready at ``version``."""
        logger.info(f"Waiting for data-plane pod on node {node_name} to come to Ready state...")
        poll_until(
            lambda: self.data_plane_ready(node_name, version),
            done=bool,
            interval=self.settings.data_plane_poll_interval,
            sleep=self.sleep,
            description=f"data-plane pod on {node_name}",
        )
        logger.info(f"Data-plane pod on node {node_name} is ready at version {version}")

    def wait_for_control_plane(self, version: str) -> None:
        """Block until every control-plane component is ready at ``version``."""
        logger.info(f"Waiting for control plane to be ready at version {version}...")
        poll_until(
            lambda: self.control_plane_ready(version),
            done=bool,
            interval=self.settings.control_plane_poll_interval,
            sleep=self.sleep,
            description="control plane",
        )
        logger.info("Control plane is ready")
