"""In-process configuration source fed by push calls."""

import asyncio
from collections.abc import AsyncIterator, Sequence
from typing import Any

from src.core.errors import ConfigSourceError
from src.ports.config_source import ConfigSourcePort
from src.ports.ping import ConfigSnapshot, PingPath, parse_snapshot

__all__ = ["QueueConfigSource"]

_CLOSED = object()


class QueueConfigSource(ConfigSourcePort):
    """Configuration source for embedding the prober in another program.

    Callers push decoded JSON tables or ready snapshots; ``watch()`` yields
    them in push order until ``close()`` or ``fail()``.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()

    def push(self, table: Sequence[PingPath] | Any) -> None:
        """Publish a new desired state.

        Args:
            table: Sequence of PingPath, or a decoded JSON ping table.
        """
        if isinstance(table, (list, tuple)) and all(isinstance(e, PingPath) for e in table):
            snapshot: ConfigSnapshot = tuple(table)
        else:
            snapshot = parse_snapshot(table)
        self._queue.put_nowait(snapshot)

    def fail(self, exc: BaseException) -> None:
        """End the stream with an error raised from ``watch()``."""
        self._queue.put_nowait(exc)

    def close(self) -> None:
        """End the stream normally."""
        self._queue.put_nowait(_CLOSED)

    async def watch(self) -> AsyncIterator[ConfigSnapshot]:
        """Yield pushed snapshots in order.

        Raises:
            ConfigSourceError: If ``fail()`` was called.
        """
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            if isinstance(item, BaseException):
                if isinstance(item, ConfigSourceError):
                    raise item
                raise ConfigSourceError(f"Configuration source failed: {item}") from item
            yield item
