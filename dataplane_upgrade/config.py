"""Configuration management for the data-plane upgrade."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class UpgradeSettings(BaseSettings):
    """Upgrade settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="UPGRADE_",
    )

    # Service Settings
    service_name: str = "dataplane-upgrade"
    version: str = "0.1.0"
    log_level: str = "INFO"

    # Run Settings
    namespace: str = "mayastor"
    rest_endpoint: str = Field(
        default="http://mayastor-api-rest:8081",
        description="Storage control-plane REST endpoint",
    )
    from_version: str = ""
    to_version: str = ""

    # Kubernetes Settings
    kubeconfig_path: str | None = Field(
        default=None,
        description="Path to kubeconfig file; in-cluster config is used when unset",
    )
    kube_context: str | None = None

    # Label Settings
    data_plane_label: str = "app=io-engine"
    core_agent_label: str = "app=agent-core"
    api_gateway_label: str = "app=api-rest"
    metadata_store_label: str = "app.kubernetes.io/name=etcd"
    version_label_key: str = "openebs.io/version"
    drain_label: str = Field(
        default="mayastor-upgrade",
        description="Drain label identifying drains issued by this upgrade",
    )

    # Poll Intervals (seconds)
    drain_poll_interval: float = 5.0
    rebuild_grace_period: float = 60.0
    rebuild_poll_interval: float = 10.0
    uncordon_poll_interval: float = 1.0
    data_plane_poll_interval: float = 5.0
    control_plane_poll_interval: float = 3.0

    # REST Client Settings
    rest_timeout_seconds: float = 30.0
    volume_page_size: int = 500

    def versioned_selector(self, role_label: str, version: str) -> str:
        """Compose a ``<role-label>,<version-label-key>=<version>`` selector."""
        return f"{role_label},{self.version_label_key}={version}"


@lru_cache
def get_settings() -> UpgradeSettings:
    """Get cached settings instance."""
    return UpgradeSettings()
