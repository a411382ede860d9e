"""Periodic, overlap-suppressed probing of one ping definition."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from src.core.errors import NetworkError
from src.ports.ping import PingPath, ProbeResult
from src.ports.result_sink import ResultSinkPort

__all__ = ["MIN_PERIOD_SEC", "ProbeFn", "TaskRunner", "get_now_time"]

logger = logging.getLogger(__name__)

ProbeFn = Callable[[PingPath], Awaitable[ProbeResult]]

# Shortest tick period, in seconds
MIN_PERIOD_SEC = 0.001


def get_now_time() -> float:
    """Get current monotonic time in seconds.

    Uses event loop's monotonic clock for accurate scheduling
    without wall-clock drift.

    Returns:
        Current time in seconds (monotonic).
    """
    return asyncio.get_running_loop().time()


class TaskRunner:
    """Probe one entry every ``interval_minutes``, starting immediately.

    Ticks are anchored to the start time, not to probe completion. A tick
    that arrives while the previous probe is still in flight is skipped, so
    at most one probe per entry runs at any time.

    Cancelling stops future ticks but leaves an in-flight probe alone; its
    result may still reach the sink.
    """

    def __init__(self, entry: PingPath, probe_fn: ProbeFn, sink: ResultSinkPort) -> None:
        """Initialize the runner (does not start it).

        Args:
            entry: Validated ping definition.
            probe_fn: Async function performing one probe.
            sink: Receiver of every finished probe.
        """
        self.entry = entry
        self._probe_fn = probe_fn
        self._sink = sink
        self._timer: asyncio.Task[None] | None = None
        self._in_flight: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """True while future ticks are scheduled."""
        return self._timer is not None and not self._timer.done()

    @property
    def in_flight(self) -> asyncio.Task[None] | None:
        """The probe currently running, if any."""
        if self._in_flight is not None and not self._in_flight.done():
            return self._in_flight
        return None

    def start(self) -> None:
        """Schedule tick 0 now and the following ticks on the interval."""
        if self._timer is not None:
            raise RuntimeError("TaskRunner already started")
        self._timer = asyncio.get_running_loop().create_task(
            self._tick_forever(), name=f"ping {self.entry.method} {self.entry.path}"
        )

    def cancel(self) -> asyncio.Task[None] | None:
        """Stop future ticks without waiting for the in-flight probe.

        Returns:
            The detached in-flight probe task, or None.
        """
        if self._timer is not None:
            self._timer.cancel()
        return self.in_flight

    async def _tick_forever(self) -> None:
        period_sec = max(self.entry.interval_minutes * 60, MIN_PERIOD_SEC)
        loop = asyncio.get_running_loop()
        next_tick = get_now_time()

        while True:
            if self.in_flight is None:
                self._in_flight = loop.create_task(self._probe_once())
            else:
                logger.debug(f"Skipping tick for {self.entry.path}: previous probe still in flight")

            next_tick += period_sec
            await asyncio.sleep(max(0, next_tick - get_now_time()))

    async def _probe_once(self) -> None:
        """Run one probe and forward its outcome to the sink."""
        try:
            result = await self._probe_fn(self.entry)
        except NetworkError as e:
            result = self._failure(e)
        except asyncio.CancelledError:
            logger.debug(f"Probe for {self.entry.path} cancelled")
            raise
        except Exception as e:  # noqa: BLE001
            logger.error(f"Unexpected error probing {self.entry.path}: {e}", exc_info=True)
            result = self._failure(e)

        try:
            self._sink.consume(result)
        except Exception as e:  # noqa: BLE001
            logger.error(f"Result sink failed for {self.entry.path}: {e}", exc_info=True)

    def _failure(self, exc: Exception) -> ProbeResult:
        """Describe a probe that ended without an HTTP response."""
        return ProbeResult(
            status=None,
            url=self.entry.path,
            completed_at=datetime.now(timezone.utc),
            error=str(exc) or type(exc).__name__,
        )
