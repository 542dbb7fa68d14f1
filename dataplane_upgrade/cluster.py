"""Kubernetes workload access scoped to the storage namespace."""

from abc import ABC, abstractmethod
from typing import Optional

from kubernetes import config
from kubernetes.client import ApiClient, CoreV1Api, V1Pod
from kubernetes.config.config_exception import ConfigException

from .errors import UpgradeError, UpgradeErrorKind


class WorkloadApi(ABC):
    """Pod operations the upgrade needs from the cluster."""

    namespace: str

    @abstractmethod
    def list_pods(
        self, label_selector: str, field_selector: Optional[str] = None
    ) -> list[V1Pod]:
        """
        List pods in the namespace, in the order the API returns them.

        Args:
            label_selector: Label selector string (e.g., "app=io-engine")
            field_selector: Optional field selector string

        Returns:
            Matching pods
        """

    @abstractmethod
    def delete_pod(self, name: str) -> None:
        """
        Delete a pod and return once the API accepts the request.

        Args:
            name: Pod name
        """

    def close(self) -> None:
        """Release client resources."""


class KubeWorkloadApi(WorkloadApi):
    """WorkloadApi backed by the Kubernetes CoreV1 API."""

    def __init__(
        self,
        namespace: str,
        kubeconfig_path: Optional[str] = None,
        context: Optional[str] = None,
    ):
        """
        Initialize the workload API.

        Args:
            namespace: Namespace holding the storage workloads
            kubeconfig_path: Kubeconfig file; in-cluster config when None
            context: Specific kubeconfig context to use

        Raises:
            UpgradeError: If no usable cluster configuration is found
        """
        self.namespace = namespace
        self._api_client: Optional[ApiClient] = None
        self._core_v1: Optional[CoreV1Api] = None

        self._initialize_client(kubeconfig_path, context)

    def _initialize_client(
        self, kubeconfig_path: Optional[str], context: Optional[str]
    ) -> None:
        """Initialize Kubernetes API client."""
        try:
            if kubeconfig_path:
                config.load_kube_config(config_file=kubeconfig_path, context=context)
            else:
                # Running inside the cluster as the upgrade job
                config.load_incluster_config()
        except ConfigException as e:
            raise UpgradeError(
                UpgradeErrorKind.CLIENT_CONFIGURATION,
                target="kubernetes",
                reason=str(e),
            ) from e

        self._api_client = ApiClient()
        self._core_v1 = CoreV1Api(self._api_client)

    @property
    def core_v1(self) -> CoreV1Api:
        """Get CoreV1Api instance."""
        if not self._core_v1:
            raise RuntimeError("Cluster connection not initialized")
        return self._core_v1

    def list_pods(
        self, label_selector: str, field_selector: Optional[str] = None
    ) -> list[V1Pod]:
        kwargs = {"namespace": self.namespace, "label_selector": label_selector}
        if field_selector:
            kwargs["field_selector"] = field_selector
        return self.core_v1.list_namespaced_pod(**kwargs).items

    def delete_pod(self, name: str) -> None:
        self.core_v1.delete_namespaced_pod(name, self.namespace)

    def close(self) -> None:
        if self._api_client:
            self._api_client.close()
            self._api_client = None
        self._core_v1 = None

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def pod_is_ready(pod: V1Pod) -> bool:
    """Return True if the pod reports a Ready condition with status True."""
    conditions = (pod.status.conditions if pod.status else None) or []
    return any(c.type == "Ready" and c.status == "True" for c in conditions)


def all_pods_are_ready(pods: list[V1Pod]) -> bool:
    """Return True if the list is non-empty and every pod is ready."""
    return bool(pods) and all(pod_is_ready(pod) for pod in pods)


def pod_name(pod: V1Pod) -> str:
    """Return the pod's name, or an empty string when metadata is missing."""
    return pod.metadata.name if pod.metadata and pod.metadata.name else ""
