"""Signal handling for graceful shutdown."""

import asyncio
import logging
import signal

__all__ = ["make_stop_on_sigterm"]

logger = logging.getLogger(__name__)


def make_stop_on_sigterm() -> asyncio.Event:
    """Create SIGTERM-based stop event for the scheduler.

    Registers SIGTERM and SIGINT handlers that set an asyncio.Event the
    scheduler waits on.

    On Docker/Kubernetes, SIGTERM is sent 30s before SIGKILL,
    allowing graceful shutdown.

    Returns:
        Event that is set once a termination signal has been received.
    """
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    def handle_signal() -> None:
        """Signal handler that sets the stop event on SIGTERM/SIGINT."""
        logger.info("Termination signal received, initiating graceful shutdown...")
        stop.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, handle_signal)

    return stop
