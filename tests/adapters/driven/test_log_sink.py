"""Tests for the verbosity-filtered result sink."""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from src.adapters.driven.sink.log_sink import LogResultSink, format_result, format_timestamp
from src.ports.ping import ProbeResult
from src.ports.result_sink import LogVerbosity

__all__ = []

SINK_LOGGER = "src.adapters.driven.sink.log_sink"
MOMENT = datetime(2024, 5, 1, 10, 0, 0, 123000, tzinfo=timezone.utc)

RESULTS = [
    ProbeResult(status=200, url="https://a.test/ok", completed_at=MOMENT),
    ProbeResult(status=204, url="https://a.test/empty", completed_at=MOMENT),
    ProbeResult(status=404, url="https://a.test/missing", completed_at=MOMENT),
    ProbeResult(status=500, url="https://a.test/broken", completed_at=MOMENT),
    ProbeResult(status=None, url="https://a.test/down", completed_at=MOMENT, error="refused"),
]


def sink_lines(caplog: pytest.LogCaptureFixture) -> list[str]:
    return [r.getMessage() for r in caplog.records if r.name == SINK_LOGGER]


def test_all_logs_every_result(caplog: pytest.LogCaptureFixture) -> None:
    """ALL produces exactly one line per result."""
    caplog.set_level(logging.INFO, logger=SINK_LOGGER)
    sink = LogResultSink(LogVerbosity.ALL)

    for result in RESULTS:
        sink.consume(result)

    assert len(sink_lines(caplog)) == len(RESULTS)


def test_error_logs_only_failures(caplog: pytest.LogCaptureFixture) -> None:
    """ERROR skips 2xx results."""
    caplog.set_level(logging.INFO, logger=SINK_LOGGER)
    sink = LogResultSink(LogVerbosity.ERROR)

    for result in RESULTS:
        sink.consume(result)

    lines = sink_lines(caplog)
    assert len(lines) == 3
    assert not any("/ok" in line or "/empty" in line for line in lines)


def test_none_logs_nothing(caplog: pytest.LogCaptureFixture) -> None:
    """NONE produces no lines at all."""
    caplog.set_level(logging.DEBUG, logger=SINK_LOGGER)
    sink = LogResultSink(LogVerbosity.NONE)

    for result in RESULTS:
        sink.consume(result)

    assert sink_lines(caplog) == []


def test_default_verbosity_is_all() -> None:
    """Unconfigured sinks report everything."""
    assert LogResultSink().verbosity is LogVerbosity.ALL


def test_format_result_includes_status_and_url() -> None:
    """Lines look like ``[timestamp] {status} url``."""
    line = format_result(RESULTS[0])

    assert line.startswith("[")
    assert line.endswith("] {200} https://a.test/ok")


def test_format_result_marks_network_failures() -> None:
    """Network failures carry the error message instead of a status."""
    assert format_result(RESULTS[-1]).endswith("] {ERR} https://a.test/down (refused)")


def test_format_timestamp_has_milliseconds_and_offset() -> None:
    """Timestamps are local ISO-8601 with milliseconds and UTC offset."""
    stamp = format_timestamp(MOMENT)
    parsed = datetime.fromisoformat(stamp)

    assert ".123" in stamp
    assert parsed.utcoffset() is not None
    assert parsed - MOMENT == timedelta(0)
