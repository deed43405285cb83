"""
Health Monitor - HTTP Probe.

============================================================
RESPONSIBILITY
============================================================

Issues a timed GET against one target with a retry policy and
reports what happened. It never judges up/down: any HTTP
status, even 500, is a successful probe.

============================================================
RETRY POLICY
============================================================

- Up to RETRY_ATTEMPTS sequential attempts
- Each attempt has its own REQUEST_TIMEOUT
- Only transport failures (timeout, refused connection, DNS,
  dropped connection) are retried
- Delay before attempt n (n >= 2) is RETRY_DELAY * (n - 1)

============================================================
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import aiohttp

from core.exceptions import TransportFailure

from .context import MonitorContext
from .models import ProbeResult


logger = logging.getLogger(__name__)


Sleeper = Callable[[float], Awaitable[None]]


def describe_transport_error(exc: BaseException) -> str:
    """Readable one-line description of an aiohttp transport error."""
    message = str(exc).strip()
    return message or type(exc).__name__


class HttpProbe:
    """Stateless HTTP GET probe with linear retry backoff."""

    USER_AGENT = "Server-Monitoring-Bot/1.0.0"

    def __init__(
        self,
        context: MonitorContext,
        sleep: Optional[Sleeper] = None,
    ) -> None:
        """
        Initialize probe.

        Args:
            context: Monitor context (config, clock, HTTP session)
            sleep: Coroutine used for inter-attempt delays
        """
        self._context = context
        self._sleep = sleep or asyncio.sleep

    async def probe(self, target: str) -> ProbeResult:
        """
        Probe a target, retrying transport failures.

        Returns:
            ProbeResult with status code and latency, or with the
            failure reason once every attempt has failed
        """
        config = self._context.config
        clock = self._context.clock
        max_attempts = config.retry_attempts

        started = clock.monotonic()
        last_error: Optional[TransportFailure] = None

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                delay = config.retry_delay_seconds * (attempt - 1)
                logger.debug(
                    f"[{target}] Retrying in {delay:.1f}s "
                    f"(attempt {attempt}/{max_attempts})"
                )
                await self._sleep(delay)

            try:
                status_code = await self._attempt(target, attempt)
            except TransportFailure as e:
                last_error = e
                logger.debug(f"[{target}] Attempt {attempt}/{max_attempts} failed: {e.message}")
                continue

            elapsed_ms = int((clock.monotonic() - started) * 1000)
            return ProbeResult.success(status_code, elapsed_ms, attempts=attempt)

        reason = last_error.message if last_error else "no attempts made"
        return ProbeResult.failure(
            f"Request failed after {max_attempts} attempts: {reason}",
            attempts=max_attempts,
        )

    async def _attempt(self, target: str, attempt: int) -> int:
        """
        One GET request.

        Returns:
            HTTP status code

        Raises:
            TransportFailure: no response was received
        """
        config = self._context.config
        session = self._context.require_session()
        timeout = aiohttp.ClientTimeout(total=config.request_timeout_seconds)

        try:
            async with session.get(
                target,
                timeout=timeout,
                headers={"User-Agent": self.USER_AGENT},
            ) as response:
                return response.status

        except asyncio.TimeoutError as e:
            raise TransportFailure(
                f"timeout of {config.request_timeout_ms}ms exceeded",
                target=target,
                attempt=attempt,
                cause=e,
            ) from e
        except aiohttp.ClientError as e:
            raise TransportFailure(
                describe_transport_error(e),
                target=target,
                attempt=attempt,
                cause=e,
            ) from e
