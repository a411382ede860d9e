"""Error taxonomy for the prober."""

__all__ = [
    "ConfigSourceError",
    "ConfigValidationError",
    "NetworkError",
    "PingWatchError",
]


class PingWatchError(Exception):
    """Base class for prober errors."""


class ConfigValidationError(PingWatchError):
    """A configuration entry is malformed. Handled by dropping the entry."""


class NetworkError(PingWatchError):
    """A single probe failed before any HTTP response arrived."""


class ConfigSourceError(PingWatchError):
    """The configuration stream failed and cannot be recovered by the core."""
