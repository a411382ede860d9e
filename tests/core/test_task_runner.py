"""Tests for the periodic task runner."""

import asyncio
from datetime import datetime, timezone

import pytest

from src.core.errors import NetworkError
from src.core.task_runner import MIN_PERIOD_SEC, TaskRunner
from src.ports.ping import PingPath, ProbeResult

__all__ = []

# 60 ms between ticks
FAST_INTERVAL_MIN = 0.001


class FakeProber:
    """Prober recording calls and concurrency, optionally held on a gate."""

    def __init__(self, status: int = 200, gate: asyncio.Event | None = None) -> None:
        self.status = status
        self.gate = gate
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, entry: PingPath) -> ProbeResult:
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            return ProbeResult(
                status=self.status, url=entry.path, completed_at=datetime.now(timezone.utc)
            )
        finally:
            self.in_flight -= 1


class RecordingSink:
    """Sink keeping every result."""

    def __init__(self) -> None:
        self.results: list[ProbeResult] = []

    def consume(self, result: ProbeResult) -> None:
        self.results.append(result)


def make_entry(interval_minutes: float = FAST_INTERVAL_MIN) -> PingPath:
    return PingPath(method="GET", path="https://a.test/h", interval_minutes=interval_minutes)


@pytest.mark.asyncio
async def test_runner_fires_immediately() -> None:
    """Tick 0 runs on start, before the first interval elapses."""
    prober = FakeProber()
    sink = RecordingSink()
    runner = TaskRunner(make_entry(interval_minutes=1), prober, sink)

    runner.start()
    await asyncio.sleep(0.05)
    runner.cancel()

    assert prober.calls == 1
    assert len(sink.results) == 1
    assert sink.results[0].status == 200


@pytest.mark.asyncio
async def test_runner_ticks_on_interval() -> None:
    """Ticks repeat on the configured interval."""
    prober = FakeProber()
    runner = TaskRunner(make_entry(), prober, RecordingSink())

    runner.start()
    await asyncio.sleep(0.2)
    runner.cancel()

    # Ticks at 0, 60, 120 and 180 ms
    assert 3 <= prober.calls <= 5


@pytest.mark.asyncio
async def test_runner_skips_ticks_while_probe_in_flight() -> None:
    """A slow probe causes following ticks to be skipped, not queued."""
    gate = asyncio.Event()
    prober = FakeProber(gate=gate)
    sink = RecordingSink()
    runner = TaskRunner(make_entry(), prober, sink)

    runner.start()
    await asyncio.sleep(0.25)

    # Several ticks elapsed, only the first one started a probe
    assert prober.calls == 1
    assert runner.in_flight is not None

    gate.set()
    await asyncio.sleep(0.15)
    runner.cancel()

    # Skipped ticks are not replayed in a burst after release
    assert 2 <= prober.calls <= 4
    assert prober.max_in_flight == 1
    assert len(sink.results) == prober.calls or len(sink.results) == prober.calls - 1


@pytest.mark.asyncio
async def test_runner_forwards_network_errors_and_keeps_ticking() -> None:
    """Network failures become failure results; the timer survives them."""

    async def failing_probe(entry: PingPath) -> ProbeResult:
        raise NetworkError("Connection refused")

    sink = RecordingSink()
    runner = TaskRunner(make_entry(), failing_probe, sink)

    runner.start()
    await asyncio.sleep(0.15)
    assert runner.running is True
    runner.cancel()

    assert len(sink.results) >= 2
    failure = sink.results[0]
    assert failure.status is None
    assert failure.ok is False
    assert failure.url == "https://a.test/h"
    assert failure.error == "Connection refused"


@pytest.mark.asyncio
async def test_runner_survives_unexpected_probe_errors(caplog: pytest.LogCaptureFixture) -> None:
    """Unexpected exceptions are logged, reported as failures, and ticking goes on."""
    calls = 0

    async def broken_probe(entry: PingPath) -> ProbeResult:
        nonlocal calls
        calls += 1
        raise RuntimeError("boom")

    sink = RecordingSink()
    runner = TaskRunner(make_entry(), broken_probe, sink)

    runner.start()
    await asyncio.sleep(0.15)
    runner.cancel()

    assert calls >= 2
    assert len(sink.results) == calls
    failure = sink.results[0]
    assert failure.status is None
    assert failure.ok is False
    assert failure.url == "https://a.test/h"
    assert failure.error == "boom"
    assert "boom" in caplog.text


@pytest.mark.asyncio
async def test_runner_reports_errors_without_message() -> None:
    """Exceptions with an empty message are reported by type name."""

    async def broken_probe(entry: PingPath) -> ProbeResult:
        raise ValueError()

    sink = RecordingSink()
    runner = TaskRunner(make_entry(interval_minutes=1), broken_probe, sink)

    runner.start()
    await asyncio.sleep(0.05)
    runner.cancel()

    assert [r.error for r in sink.results] == ["ValueError"]


@pytest.mark.asyncio
async def test_runner_clamps_tiny_intervals() -> None:
    """Sub-millisecond intervals tick at most once per minimum period."""
    prober = FakeProber()
    runner = TaskRunner(make_entry(interval_minutes=1e-15), prober, RecordingSink())

    runner.start()
    await asyncio.sleep(0.2)
    runner.cancel()

    # At most one tick per MIN_PERIOD_SEC, plus tick 0
    assert 1 <= prober.calls <= int(0.2 / MIN_PERIOD_SEC) + 1


@pytest.mark.asyncio
async def test_runner_survives_sink_errors() -> None:
    """A failing sink does not stop the runner."""

    class BrokenSink:
        def consume(self, result: ProbeResult) -> None:
            raise ValueError("sink down")

    prober = FakeProber()
    runner = TaskRunner(make_entry(), prober, BrokenSink())

    runner.start()
    await asyncio.sleep(0.15)
    runner.cancel()

    assert prober.calls >= 2


@pytest.mark.asyncio
async def test_cancel_stops_future_ticks() -> None:
    """After cancel plus one interval, no further probes happen."""
    prober = FakeProber()
    runner = TaskRunner(make_entry(), prober, RecordingSink())

    runner.start()
    await asyncio.sleep(0.01)
    runner.cancel()
    calls_at_cancel = prober.calls

    await asyncio.sleep(0.15)

    assert prober.calls == calls_at_cancel
    assert runner.running is False


@pytest.mark.asyncio
async def test_cancel_does_not_wait_for_in_flight_probe() -> None:
    """Cancel returns the in-flight probe, which may still finish normally."""
    gate = asyncio.Event()
    prober = FakeProber(gate=gate)
    sink = RecordingSink()
    runner = TaskRunner(make_entry(interval_minutes=1), prober, sink)

    runner.start()
    await asyncio.sleep(0.01)

    detached = runner.cancel()

    assert detached is not None
    assert not detached.done()

    gate.set()
    await detached

    assert detached.exception() is None
    assert len(sink.results) == 1


@pytest.mark.asyncio
async def test_cancel_without_in_flight_probe_returns_none() -> None:
    """Cancel between ticks has nothing to detach."""
    runner = TaskRunner(make_entry(interval_minutes=1), FakeProber(), RecordingSink())

    runner.start()
    await asyncio.sleep(0.01)

    assert runner.cancel() is None


@pytest.mark.asyncio
async def test_runner_cannot_start_twice() -> None:
    """A runner drives exactly one timer."""
    runner = TaskRunner(make_entry(interval_minutes=1), FakeProber(), RecordingSink())
    runner.start()

    with pytest.raises(RuntimeError, match="already started"):
        runner.start()

    runner.cancel()
