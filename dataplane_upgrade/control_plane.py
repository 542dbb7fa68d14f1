"""Storage control-plane REST API access."""

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from .models import StorageNode


class ControlPlaneApi(ABC):
    """Node and volume operations the upgrade needs from the control plane."""

    @abstractmethod
    def get_node(self, node_id: str) -> StorageNode:
        """Fetch a storage node."""

    @abstractmethod
    def put_node_drain(self, node_id: str, label: str) -> None:
        """Request a drain of the node tagged with ``label``."""

    @abstractmethod
    def delete_node_cordon(self, node_id: str, label: str) -> None:
        """Remove the cordon/drain ``label`` from the node."""

    @abstractmethod
    def is_rebuilding(self) -> bool:
        """Return True if any volume rebuild is in progress cluster-wide."""

    def close(self) -> None:
        """Release client resources."""


class RestControlPlaneApi(ControlPlaneApi):
    """
    ControlPlaneApi backed by the control plane's v0 REST API.

    Failed requests raise ``httpx.HTTPError``; nothing is retried here.
    Response bodies that cannot be decoded or parsed raise
    ``httpx.DecodingError``.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = 30.0,
        page_size: int = 500,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the REST client.

        Args:
            endpoint: Control-plane REST base URL
            timeout: Request timeout in seconds
            page_size: Volumes requested per page when checking rebuilds
            transport: Optional httpx transport (used by tests)
        """
        self.endpoint = endpoint.rstrip("/")
        self.page_size = page_size
        self.client = httpx.Client(
            base_url=f"{self.endpoint}/v0",
            timeout=timeout,
            transport=transport,
        )

    def get_node(self, node_id: str) -> StorageNode:
        response = self.client.get(f"/nodes/{node_id}")
        response.raise_for_status()
        try:
            return StorageNode.from_api(response.json())
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise httpx.DecodingError(
                f"Invalid storage node response: {e!r}", request=response.request
            ) from e

    def put_node_drain(self, node_id: str, label: str) -> None:
        response = self.client.put(f"/nodes/{node_id}/drain/{label}")
        response.raise_for_status()

    def delete_node_cordon(self, node_id: str, label: str) -> None:
        response = self.client.delete(f"/nodes/{node_id}/cordon/{label}")
        response.raise_for_status()

    def is_rebuilding(self) -> bool:
        starting_token: Optional[int] = None
        while True:
            params: dict[str, Any] = {"max_entries": self.page_size}
            if starting_token is not None:
                params["starting_token"] = starting_token

            response = self.client.get("/volumes", params=params)
            response.raise_for_status()
            try:
                data = response.json()
                rebuilding = any(
                    _volume_is_rebuilding(v) for v in data.get("entries", [])
                )
            except (ValueError, TypeError, AttributeError) as e:
                raise httpx.DecodingError(
                    f"Invalid volume list response: {e!r}", request=response.request
                ) from e

            if rebuilding:
                return True

            starting_token = data.get("next_token")
            if starting_token is None:
                return False

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def _volume_is_rebuilding(volume: dict[str, Any]) -> bool:
    # A nexus child carries rebuild_progress only while it is being rebuilt.
    target = (volume.get("state") or {}).get("target") or {}
    return any(
        child.get("rebuild_progress") is not None
        for child in target.get("children", [])
    )
