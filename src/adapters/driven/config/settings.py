"""Configuration loading from environment variables."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from src.ports.result_sink import LogVerbosity

__all__ = ["Settings", "load_settings"]

load_dotenv()

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """Runtime configuration for the prober service.

    Attributes:
        ping_config_path: JSON file holding the ping table.
        log: Which probe results are logged (ALL, ERROR or NONE).
        config_poll_interval_sec: Seconds between checks of the ping table.
        probe_timeout_sec: Total timeout for one probe in seconds.
    """

    ping_config_path: str = Field(..., description="JSON file holding the ping table.")
    log: LogVerbosity = Field(default=LogVerbosity.ALL, description="Result log verbosity.")
    config_poll_interval_sec: float = Field(
        default=5.0, gt=0, description="Seconds between checks of the ping table."
    )
    probe_timeout_sec: float = Field(
        default=30.0, gt=0, description="Total timeout for one probe in seconds."
    )

    @field_validator("ping_config_path")
    @classmethod
    def validate_ping_config_path(cls, v: str) -> str:
        """Validate that the ping table file exists.

        Args:
            v: Path to validate.

        Returns:
            The validated path.

        Raises:
            ValueError: If the path does not point to a file.
        """
        if not Path(v).is_file():
            raise ValueError(f"Ping config file not found: {v}")
        return v

    @field_validator("log", mode="before")
    @classmethod
    def normalize_log(cls, v: object) -> object:
        """Accept verbosity names in any case."""
        if isinstance(v, str):
            return v.strip().upper()
        return v


def load_settings() -> Settings:
    """Load and validate settings from environment.

    Required environment variables:
    - PING_CONFIG_PATH: Path to the JSON ping table.

    Optional:
    - LOG: ALL (default), ERROR or NONE.
    - CONFIG_POLL_INTERVAL_SEC: Positive number, default 5.
    - PROBE_TIMEOUT_SEC: Positive number, default 30.

    Returns:
        Validated Settings object.

    Raises:
        RuntimeError: If required env vars missing.
        ValueError: If configuration is invalid.
    """
    try:
        ping_config_path = os.environ["PING_CONFIG_PATH"]
    except KeyError as e:
        raise RuntimeError(f"Missing required environment variable: {e.args[0]}") from e

    optional = {
        "log": os.getenv("LOG"),
        "config_poll_interval_sec": os.getenv("CONFIG_POLL_INTERVAL_SEC"),
        "probe_timeout_sec": os.getenv("PROBE_TIMEOUT_SEC"),
    }

    settings = Settings(
        ping_config_path=ping_config_path,
        **{key: value for key, value in optional.items() if value},
    )

    logger.info(
        f"Prober configured: config={settings.ping_config_path}, "
        f"log={settings.log.value}, "
        f"poll={settings.config_poll_interval_sec}s, "
        f"timeout={settings.probe_timeout_sec}s"
    )

    return settings
