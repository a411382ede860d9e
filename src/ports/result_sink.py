"""Result sink port definition (interface and verbosity levels)."""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from src.ports.ping import ProbeResult

__all__ = ["LogVerbosity", "ResultSinkPort"]


class LogVerbosity(str, Enum):
    """Which probe results the sink reports."""

    ALL = "ALL"
    ERROR = "ERROR"
    NONE = "NONE"


class ResultSinkPort(Protocol):
    """Consumer of probe results.

    Called from task runners on the event loop; must not block.
    """

    def consume(self, result: ProbeResult, /) -> None:
        """Handle one finished probe.

        Args:
            result: The probe outcome.
        """
        ...
