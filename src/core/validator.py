"""Well-formedness rules for ping definitions."""

import math
import re
from collections.abc import Mapping

from src.core.errors import ConfigValidationError
from src.ports.ping import PingPath

__all__ = ["ALLOWED_METHODS", "is_valid", "validate"]

ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE")
_URL_SCHEME = re.compile(r"^https?://")


def validate(entry: PingPath) -> None:
    """Check one entry against every rule.

    Args:
        entry: Entry read from a snapshot.

    Raises:
        ConfigValidationError: Naming the first rule the entry breaks.
    """
    interval = entry.interval_minutes
    if isinstance(interval, bool) or not isinstance(interval, (int, float)):
        raise ConfigValidationError(f"intervalMinutes must be a number (got {interval!r})")
    try:
        finite = math.isfinite(interval)
    except OverflowError:
        finite = False
    if not interval > 0 or not finite:
        raise ConfigValidationError(f"intervalMinutes must be a positive finite number (got {interval!r})")

    if entry.method not in ALLOWED_METHODS:
        raise ConfigValidationError(f"Unsupported method {entry.method!r}")

    if not isinstance(entry.path, str) or not _URL_SCHEME.match(entry.path):
        raise ConfigValidationError(f"path must start with http:// or https:// (got {entry.path!r})")

    if entry.headers is None:
        return
    if not isinstance(entry.headers, Mapping):
        raise ConfigValidationError("headers must be an object")
    for name, value in entry.headers.items():
        if not (isinstance(name, str) and name and isinstance(value, str) and value):
            raise ConfigValidationError(f"Header {name!r} must have a non-empty string name and value")


def is_valid(entry: PingPath) -> bool:
    """Return True if the entry passes every rule. Pure."""
    try:
        validate(entry)
    except ConfigValidationError:
        return False
    return True
