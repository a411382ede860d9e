"""Reconfiguration loop: one generation of task runners per snapshot."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable

from src.core.errors import ConfigSourceError
from src.core.task_runner import ProbeFn, TaskRunner
from src.core.validator import is_valid
from src.ports.ping import ConfigSnapshot, PingPath
from src.ports.result_sink import ResultSinkPort

__all__ = ["Scheduler", "start_scheduler"]

logger = logging.getLogger(__name__)


class Scheduler:
    """Owns the running task set and swaps it on every snapshot.

    Replacement is total: each snapshot cancels every runner of the previous
    generation and starts a fresh runner per valid entry, even when the
    snapshot equals the previous one. The swap is synchronous, so nothing
    else on the event loop can observe a half-replaced set.
    """

    def __init__(
        self,
        probe_fn: ProbeFn,
        sink: ResultSinkPort,
        validator: Callable[[PingPath], bool] = is_valid,
    ) -> None:
        """Initialize an idle scheduler.

        Args:
            probe_fn: Async function performing one probe.
            sink: Receiver of probe results.
            validator: Predicate deciding which entries get a runner.
        """
        self._probe_fn = probe_fn
        self._sink = sink
        self._validator = validator
        self._runners: list[TaskRunner] = []
        # Probes left running by cancelled runners; referenced until done.
        self._detached: set[asyncio.Task[None]] = set()
        self.generation = 0

    @property
    def active_entries(self) -> tuple[PingPath, ...]:
        """Entries of the current generation, in snapshot order."""
        return tuple(runner.entry for runner in self._runners)

    @property
    def runners(self) -> tuple[TaskRunner, ...]:
        """Runners of the current generation."""
        return tuple(self._runners)

    def apply(self, snapshot: ConfigSnapshot) -> None:
        """Replace the running task set with one built from ``snapshot``.

        Args:
            snapshot: Complete desired state; invalid entries are dropped.
        """
        entries = [entry for entry in snapshot if self._validator(entry)]
        dropped = len(snapshot) - len(entries)
        if dropped:
            logger.debug(f"Ignoring {dropped} invalid ping definition(s)")

        self.cancel_all()

        runners = [TaskRunner(entry, self._probe_fn, self._sink) for entry in entries]
        for runner in runners:
            runner.start()
        self._runners = runners
        self.generation += 1

        logger.info(f"Generation {self.generation}: probing {len(runners)} endpoint(s)")

    def cancel_all(self) -> None:
        """Cancel every runner of the current generation without blocking."""
        for runner in self._runners:
            probe = runner.cancel()
            if probe is not None:
                self._detached.add(probe)
                probe.add_done_callback(self._detached.discard)
        self._runners = []

    async def run(self, snapshots: AsyncIterator[ConfigSnapshot]) -> None:
        """Apply every snapshot from the stream until it ends.

        Args:
            snapshots: Live stream of configuration snapshots.

        Raises:
            ConfigSourceError: If the stream fails.
        """
        try:
            async for snapshot in snapshots:
                self.apply(snapshot)
            logger.info("Configuration stream ended")
        except ConfigSourceError as e:
            logger.error(f"Configuration source failed: {e}")
            raise
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Cancel all runners, then cancel and await detached probes."""
        self.cancel_all()
        if self._detached:
            pending = list(self._detached)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)


async def start_scheduler(
    snapshots: AsyncIterator[ConfigSnapshot],
    probe_fn: ProbeFn,
    sink: ResultSinkPort,
    stop: asyncio.Event,
) -> None:
    """Run a scheduler until ``stop`` is set or the snapshot stream ends.

    Args:
        snapshots: Live stream of configuration snapshots.
        probe_fn: Async function performing one probe.
        sink: Receiver of probe results.
        stop: Event that requests shutdown when set.

    Raises:
        ConfigSourceError: If the stream fails before ``stop`` is set.
    """
    scheduler = Scheduler(probe_fn=probe_fn, sink=sink)
    loop = asyncio.get_running_loop()
    run_task = loop.create_task(scheduler.run(snapshots))
    stop_task = loop.create_task(stop.wait())

    try:
        await asyncio.wait({run_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stop_task.cancel()
        if not run_task.done():
            run_task.cancel()
        await asyncio.gather(stop_task, return_exceptions=True)
        await asyncio.gather(run_task, return_exceptions=True)

    if not run_task.cancelled():
        # Re-raises a source failure.
        run_task.result()
