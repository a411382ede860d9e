"""Result sink that writes one log line per reported probe."""

import logging
from datetime import datetime

from src.ports.ping import ProbeResult
from src.ports.result_sink import LogVerbosity, ResultSinkPort

__all__ = ["LogResultSink", "format_result", "format_timestamp"]

logger = logging.getLogger(__name__)


def format_timestamp(moment: datetime) -> str:
    """Render a time as local ISO-8601 with milliseconds and UTC offset."""
    return moment.astimezone().isoformat(timespec="milliseconds")


def format_result(result: ProbeResult) -> str:
    """Render one result, e.g. ``[2024-05-01T10:00:00.000+02:00] {200} https://a.test/h``."""
    stamp = format_timestamp(result.completed_at)
    if result.status is None:
        return f"[{stamp}] {{ERR}} {result.url} ({result.error})"
    return f"[{stamp}] {{{result.status}}} {result.url}"


class LogResultSink(ResultSinkPort):
    """Log probe results filtered by verbosity.

    - ALL: every result.
    - ERROR: only results that are not 2xx, network failures included.
    - NONE: nothing.
    """

    def __init__(self, verbosity: LogVerbosity = LogVerbosity.ALL) -> None:
        self.verbosity = verbosity

    def consume(self, result: ProbeResult) -> None:
        if self.verbosity is LogVerbosity.NONE:
            return
        if self.verbosity is LogVerbosity.ERROR and result.ok:
            return
        logger.info(format_result(result))
