"""Ping definitions and probe results (DTOs)."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any

from src.core.errors import ConfigSourceError

__all__ = ["ConfigSnapshot", "PingPath", "ProbeResult", "parse_snapshot"]


@dataclass(slots=True, frozen=True)
class PingPath:
    """One endpoint to probe, exactly as read from a configuration snapshot.

    Values are not coerced: the validator decides whether the entry is usable.

    Attributes:
        method: HTTP method (GET, POST, PUT or DELETE when valid).
        path: Absolute http(s) URL to request.
        interval_minutes: Minutes between ticks.
        headers: Optional read-only request headers.
    """

    method: Any
    path: Any
    interval_minutes: Any
    headers: Mapping[Any, Any] | None = None

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> PingPath:
        """Build an entry from one decoded JSON object.

        Args:
            raw: Mapping with ``method``, ``path``, ``intervalMinutes`` and
                optional ``headers`` keys.

        Returns:
            New immutable entry.
        """
        headers = raw.get("headers")
        if isinstance(headers, Mapping):
            headers = MappingProxyType(dict(headers))
        return cls(
            method=raw.get("method"),
            path=raw.get("path"),
            interval_minutes=raw.get("intervalMinutes"),
            headers=headers,
        )


ConfigSnapshot = tuple[PingPath, ...]


def parse_snapshot(raw: Any) -> ConfigSnapshot:
    """Turn a decoded JSON document into a snapshot.

    ``None`` means an empty table. Objects keyed by index (how sparse arrays
    come back from key-value stores) are read in numeric key order when every
    key is an integer, otherwise in document order. Elements that are not
    objects are skipped.

    Args:
        raw: Decoded JSON document.

    Returns:
        Ordered snapshot of entries, not yet validated.

    Raises:
        ConfigSourceError: If the document is neither a list nor an object.
    """
    if raw is None:
        return ()
    if isinstance(raw, Mapping):
        keys = list(raw)
        if all(isinstance(k, str) and k.isdecimal() for k in keys):
            keys.sort(key=int)
        items = [raw[k] for k in keys]
    elif isinstance(raw, list):
        items = raw
    else:
        raise ConfigSourceError(
            f"Ping table must be a JSON array or object, got {type(raw).__name__}"
        )
    return tuple(PingPath.from_raw(item) for item in items if isinstance(item, Mapping))


@dataclass(slots=True, frozen=True)
class ProbeResult:
    """Outcome of one probe, consumed once by the result sink.

    Attributes:
        status: HTTP status code; None when the request never got a response.
        url: Effective URL after redirects (requested URL on failure).
        completed_at: Aware UTC time when the probe finished.
        error: Network failure message, if any.
    """

    status: int | None
    url: str
    completed_at: datetime
    error: str | None = None

    @property
    def ok(self) -> bool:
        """True for 2xx responses."""
        return self.status is not None and 200 <= self.status < 300
