"""Application entrypoint."""

import asyncio
import logging

from src.adapters.driven.config.file_source import FileConfigSource
from src.adapters.driven.config.settings import load_settings
from src.adapters.driven.http.client import HttpClient
from src.adapters.driven.logging.logging_config import configure_logs
from src.adapters.driven.sink.log_sink import LogResultSink
from src.adapters.driving.signals import make_stop_on_sigterm
from src.core.errors import ConfigSourceError
from src.core.scheduler import start_scheduler

__all__ = ["main"]

logger = logging.getLogger(__name__)


async def main() -> None:
    """Start the URL prober service.

    Startup sequence:
    1. Configure logging.
    2. Load and validate configuration.
    3. Watch the ping table and keep one task per valid entry.
    4. Gracefully shutdown on SIGTERM.
    """
    configure_logs()
    logger.info("Starting URL prober service...")

    try:
        config = load_settings()
    except (RuntimeError, ValueError) as exc:
        logger.error(
            "Configuration error: %s\n"
            "Hint: check PING_CONFIG_PATH, LOG, CONFIG_POLL_INTERVAL_SEC "
            "and PROBE_TIMEOUT_SEC.",
            exc,
        )
        return

    source = FileConfigSource(
        path=config.ping_config_path,
        poll_interval_sec=config.config_poll_interval_sec,
    )
    sink = LogResultSink(verbosity=config.log)
    http_client = HttpClient(timeout_sec=config.probe_timeout_sec)

    async with http_client as http:
        try:
            await start_scheduler(
                snapshots=source.watch(),
                probe_fn=http.probe,
                sink=sink,
                stop=make_stop_on_sigterm(),
            )
        except ConfigSourceError as e:
            logger.error(f"Stopping: configuration source failed: {e}")
        except Exception as e:
            logger.error(f"Unhandled exception in scheduler: {e}", exc_info=True)

        logger.info("URL prober stopped.")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Shutdown requested by user (Ctrl+C).")
