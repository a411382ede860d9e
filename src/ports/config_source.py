"""Configuration source port definition (interface)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol

from src.ports.ping import ConfigSnapshot

__all__ = ["ConfigSourcePort"]


class ConfigSourcePort(Protocol):
    """Live stream of configuration snapshots.

    Implementations push the first snapshot as soon as it is available and a
    new one on every change. Each snapshot is the complete desired state.
    Unrecoverable transport failures are raised as ConfigSourceError.
    """

    def watch(self) -> AsyncIterator[ConfigSnapshot]:
        """Subscribe to configuration changes.

        Returns:
            Async iterator of snapshots.
        """
        ...
