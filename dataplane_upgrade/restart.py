"""Data-plane pod restart."""

import logging

from kubernetes.client import V1Pod

from .cluster import WorkloadApi, pod_name
from .errors import UpgradeErrorKind, error_context

logger = logging.getLogger(__name__)


class PodRestarter:
    """Deletes a data-plane pod so its DaemonSet recreates it at the new version."""

    def __init__(self, workloads: WorkloadApi):
        self.workloads = workloads

    def restart(self, node_name: str, pod: V1Pod) -> None:
        """
        Issue the delete for ``pod`` and return without waiting for termination.

        Args:
            node_name: Node the pod runs on
            pod: Pod to delete

        Raises:
            UpgradeError: If the delete request fails
        """
        name = pod_name(pod)
        logger.info(f"Deleting pod {name} on node {node_name}")

        with error_context(UpgradeErrorKind.POD_DELETE, name=name, node=node_name):
            self.workloads.delete_pod(name)

        logger.info(f"Pod delete command issued for node {node_name}")
