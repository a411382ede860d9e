"""Configuration source watching a local JSON file."""

import asyncio
import json
import logging
import os
from collections.abc import AsyncIterator
from typing import Any

from src.core.errors import ConfigSourceError
from src.ports.config_source import ConfigSourcePort
from src.ports.ping import ConfigSnapshot, parse_snapshot

__all__ = ["FileConfigSource"]

logger = logging.getLogger(__name__)


class FileConfigSource(ConfigSourcePort):
    """Yield the ping table from a JSON file, then again on every change.

    The file holds an array (or an index-keyed object) of ping definitions:

        [{"method": "GET", "path": "https://a.test/h", "intervalMinutes": 1,
          "headers": {"Authorization": "Bearer x"}}]

    Changes are detected by polling the file's modification stamp.
    """

    def __init__(self, path: str, poll_interval_sec: float = 5.0) -> None:
        """Initialize the source.

        Args:
            path: JSON file to watch.
            poll_interval_sec: Seconds between modification checks.
        """
        self.path = path
        self.poll_interval_sec = poll_interval_sec

    def _stamp(self) -> tuple[int, int]:
        try:
            stat = os.stat(self.path)
        except OSError as e:
            raise ConfigSourceError(f"Ping config file unavailable: {self.path} ({e})") from e
        return stat.st_mtime_ns, stat.st_size

    def _read(self) -> Any:
        try:
            with open(self.path, encoding="utf-8") as f:
                return json.load(f)
        except OSError as e:
            raise ConfigSourceError(f"Ping config file unavailable: {self.path} ({e})") from e

    def load(self) -> ConfigSnapshot:
        """Read the file once.

        Returns:
            Parsed snapshot.

        Raises:
            ConfigSourceError: If the file is missing, unreadable or invalid.
        """
        try:
            return parse_snapshot(self._read())
        except ValueError as e:
            raise ConfigSourceError(f"Ping config file contains invalid JSON: {self.path}") from e

    async def watch(self) -> AsyncIterator[ConfigSnapshot]:
        """Yield the current table, then a new one after each file change.

        A file that is missing for one poll (an editor replacing it by rename)
        is checked again on the next poll before the stream fails.

        Raises:
            ConfigSourceError: If the file stays missing or is invalid at startup.
        """
        stamp = await asyncio.to_thread(self._stamp)
        snapshot = await asyncio.to_thread(self.load)
        logger.info(f"Loaded {len(snapshot)} ping definition(s) from {self.path}")
        yield snapshot

        missing = False
        while True:
            await asyncio.sleep(self.poll_interval_sec)
            try:
                current = await asyncio.to_thread(self._stamp)
                if current == stamp:
                    missing = False
                    continue
                snapshot = await asyncio.to_thread(self.load)
            except ConfigSourceError as e:
                if isinstance(e.__cause__, OSError):
                    if missing:
                        raise
                    missing = True
                    logger.warning(f"{e}; checking again on next poll")
                    continue
                # Keep the running set until the next valid write.
                stamp = current
                missing = False
                logger.warning(f"Ignoring change to {self.path}: {e}")
                continue

            stamp = current
            missing = False
            logger.info(f"Reloaded {len(snapshot)} ping definition(s) from {self.path}")
            yield snapshot
