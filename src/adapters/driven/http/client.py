"""HTTP prober adapter."""

import asyncio
import logging
from datetime import datetime, timezone
from types import TracebackType

import aiohttp
from aiohttp import ClientTimeout

from src.core.errors import NetworkError
from src.ports.ping import PingPath, ProbeResult

__all__ = ["HttpClient", "NETWORK_ERRORS"]

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 30

# Failures where no HTTP response was received
NETWORK_ERRORS = (
    aiohttp.ClientError,  # Connection refused, DNS failed, payload errors
    asyncio.TimeoutError,  # Total request timeout
)


class HttpClient:
    """HTTP client performing one request per probe.

    Features:
    - Context manager for proper resource cleanup.
    - Redirects followed; the effective URL is reported.
    - No retries: a failed probe is one failed tick.
    """

    def __init__(self, timeout_sec: float = PROBE_TIMEOUT) -> None:
        """Initialize HTTP client.

        Args:
            timeout_sec: Total timeout for one probe in seconds.
        """
        self.timeout_sec = timeout_sec
        self.session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "HttpClient":
        """Enter async context manager (start session).

        Returns:
            Self for use in async with statement.
        """
        self.session = aiohttp.ClientSession()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Exit async context manager (close session).

        Args:
            exc_type: Exception type if raised in context.
            exc: Exception instance if raised in context.
            tb: Traceback if raised in context.
        """
        if self.session:
            await self.session.close()

    async def probe(self, entry: PingPath) -> ProbeResult:
        """Send one request for ``entry``.

        Args:
            entry: Validated ping definition.

        Returns:
            Result carrying the response status, including non-2xx ones.

        Raises:
            RuntimeError: If session not initialized.
            NetworkError: If no response was received.
        """
        if self.session is None:
            raise RuntimeError("Session not initialized; use 'async with' context manager")

        headers = dict(entry.headers) if entry.headers else None
        try:
            async with self.session.request(
                entry.method,
                entry.path,
                headers=headers,
                timeout=ClientTimeout(total=self.timeout_sec),
                allow_redirects=True,
            ) as resp:
                status = resp.status
                url = str(resp.url)
        except NETWORK_ERRORS as e:
            logger.debug(f"Probe failed for {entry.method} {entry.path}: {e!r}")
            raise NetworkError(str(e) or type(e).__name__) from e

        return ProbeResult(status=status, url=url, completed_at=datetime.now(timezone.utc))
