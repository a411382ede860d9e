"""Console logging setup for the prober."""

import logging

__all__ = ["configure_logs"]


def configure_logs() -> None:
    """Configure console logging.

    Sets up:
    - Root logger at INFO level.
    - Framework loggers (aiohttp, asyncio) at WARNING level.
    - Application loggers (src) at DEBUG level.
    - Format with timestamp, level, module, and line number.

    Calling it again does not add a second handler.
    """
    log_format = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s"
    date_format = "%d/%m/%y %H:%M:%S"

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    if not any(getattr(h, "_ping_watch", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(log_format, date_format))
        handler._ping_watch = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    # Suppress verbose framework loggers
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    # Application loggers
    logging.getLogger("src").setLevel(logging.DEBUG)
