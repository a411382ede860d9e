"""Healthcheck validator for container orchestration."""

import logging

from src.adapters.driven.config.file_source import FileConfigSource
from src.adapters.driven.config.settings import load_settings
from src.adapters.driven.logging.logging_config import configure_logs

__all__ = ["main"]

logger = logging.getLogger(__name__)


def main() -> int:
    """Run health check for container orchestration.

    Validates:
    - Required environment variables are set.
    - The ping table file exists and is valid JSON.

    Returns:
        0 if healthy, 1 if unhealthy.
    """
    configure_logs()

    try:
        settings = load_settings()
        snapshot = FileConfigSource(settings.ping_config_path).load()
    except Exception as exc:
        logger.error(f"Prober healthcheck FAILED: {exc}")
        return 1

    logger.info(f"Prober healthcheck OK ({len(snapshot)} ping definition(s))")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
