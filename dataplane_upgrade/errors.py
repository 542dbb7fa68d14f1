"""Upgrade error taxonomy."""

from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator

import httpx
from kubernetes.client.exceptions import ApiException


class UpgradeErrorKind(str, Enum):
    """Every way a data-plane upgrade run can fail."""

    CLIENT_CONFIGURATION = "client_configuration"
    LIST_PODS_WITH_LABEL = "list_pods_with_label"
    LIST_PODS_WITH_LABEL_AND_FIELD = "list_pods_with_label_and_field"
    EMPTY_POD_SPEC = "empty_pod_spec"
    EMPTY_POD_NODE_NAME = "empty_pod_node_name"
    POD_DELETE = "pod_delete"
    TOO_MANY_DATA_PLANE_PODS = "too_many_data_plane_pods"
    GET_STORAGE_NODE = "get_storage_node"
    EMPTY_STORAGE_NODE_SPEC = "empty_storage_node_spec"
    DRAIN_STORAGE_NODE = "drain_storage_node"
    STORAGE_NODE_UNCORDON = "storage_node_uncordon"
    LIST_STORAGE_VOLUMES = "list_storage_volumes"


_MESSAGES: dict[UpgradeErrorKind, str] = {
    UpgradeErrorKind.CLIENT_CONFIGURATION: "Failed to build API client",
    UpgradeErrorKind.LIST_PODS_WITH_LABEL: "Failed to list pods by label",
    UpgradeErrorKind.LIST_PODS_WITH_LABEL_AND_FIELD: "Failed to list pods by label and field",
    UpgradeErrorKind.EMPTY_POD_SPEC: "Pod has no spec",
    UpgradeErrorKind.EMPTY_POD_NODE_NAME: "Pod has no assigned node",
    UpgradeErrorKind.POD_DELETE: "Failed to delete pod",
    UpgradeErrorKind.TOO_MANY_DATA_PLANE_PODS: "More than one data-plane pod found on node",
    UpgradeErrorKind.GET_STORAGE_NODE: "Failed to get storage node",
    UpgradeErrorKind.EMPTY_STORAGE_NODE_SPEC: "Storage node has no spec",
    UpgradeErrorKind.DRAIN_STORAGE_NODE: "Failed to drain storage node",
    UpgradeErrorKind.STORAGE_NODE_UNCORDON: "Failed to remove drain label from storage node",
    UpgradeErrorKind.LIST_STORAGE_VOLUMES: "Failed to list storage volumes",
}


class UpgradeError(Exception):
    """
    Fatal error raised by any stage of the upgrade.

    Attributes:
        kind: Which failure occurred
        context: Identifiers describing where it occurred (node, pod, label...)
    """

    def __init__(self, kind: UpgradeErrorKind, **context: Any):
        self.kind = kind
        self.context = context
        details = ", ".join(f"{key}={value}" for key, value in context.items())
        message = _MESSAGES[kind]
        super().__init__(f"{message} ({details})" if details else message)


@contextmanager
def error_context(kind: UpgradeErrorKind, **context: Any) -> Iterator[None]:
    """
    Translate client failures inside the block into an UpgradeError.

    Args:
        kind: Error kind to raise
        **context: Identifiers attached to the error

    Raises:
        UpgradeError: If the block raises an API or HTTP error
    """
    try:
        yield
    except (ApiException, httpx.HTTPError) as e:
        raise UpgradeError(kind, **context, reason=_describe(e)) from e


def _describe(error: Exception) -> str:
    if isinstance(error, ApiException):
        return f"{error.status} {error.reason}"
    if isinstance(error, httpx.HTTPStatusError):
        return f"{error.response.status_code} {error.response.reason_phrase}"
    return str(error)
