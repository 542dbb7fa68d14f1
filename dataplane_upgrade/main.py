"""Data-plane upgrade job entry point."""

import logging
import sys
from typing import Optional

from .config import UpgradeSettings, get_settings
from .errors import UpgradeError
from .orchestrator import upgrade_data_plane

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for the job."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def run(settings: UpgradeSettings) -> int:
    """
    Run the upgrade described by ``settings``.

    Returns:
        Process exit status: 0 on success, 1 on any upgrade failure
    """
    logger.info(f"Starting {settings.service_name} v{settings.version}")
    logger.info(f"   Namespace: {settings.namespace}")
    logger.info(f"   Control plane: {settings.rest_endpoint}")
    logger.info(f"   Upgrade: {settings.from_version} -> {settings.to_version}")

    try:
        upgrade_data_plane(
            namespace=settings.namespace,
            rest_endpoint=settings.rest_endpoint,
            from_version=settings.from_version,
            to_version=settings.to_version,
            settings=settings,
        )
    except UpgradeError as e:
        logger.error(f"Data-plane upgrade failed [{e.kind.value}]: {e}", exc_info=True)
        return 1

    logger.info("✓ Data-plane upgrade completed successfully")
    return 0


def main(settings: Optional[UpgradeSettings] = None) -> None:
    """Main entry point."""
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    if not settings.from_version or not settings.to_version:
        logger.error("UPGRADE_FROM_VERSION and UPGRADE_TO_VERSION must be set")
        sys.exit(2)

    sys.exit(run(settings))


if __name__ == "__main__":
    main()
