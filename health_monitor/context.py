"""
Health Monitor - Context.

Explicit bundle of the shared collaborators (configuration,
clock, status store, HTTP session) handed to each component
constructor. There is no module-level bot instance.
"""

from dataclasses import dataclass, field
from typing import Optional

import aiohttp

from core.clock import ClockProtocol, SystemClock, format_local

from .config import MonitorConfig
from .status_store import StatusStore


@dataclass
class MonitorContext:
    """Shared state for one monitor process."""

    config: MonitorConfig
    clock: ClockProtocol = field(default_factory=SystemClock)
    store: StatusStore = field(default_factory=StatusStore)
    session: Optional[aiohttp.ClientSession] = None

    def require_session(self) -> aiohttp.ClientSession:
        """The shared HTTP session; must be opened before use."""
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        return self.session

    async def open_session(self) -> aiohttp.ClientSession:
        """Create the shared HTTP session if needed."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
        return self.session

    async def close_session(self) -> None:
        """Close the shared HTTP session."""
        if self.session is not None and not self.session.closed:
            await self.session.close()
        self.session = None

    def local_time(self, dt=None) -> str:
        """Timestamp rendered in the configured timezone."""
        return format_local(dt or self.clock.now(), self.config.timezone)
