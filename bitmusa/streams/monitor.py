"""
Streaming - Liveness Monitor.

============================================================
PURPOSE
============================================================
Periodic health sweep over every registered channel.

RULES:
- Started lazily on first subscription, at most once
- Only OPEN connections are inspected
- Flag false at sweep time -> stale -> handed to on_stale
- Flag true -> cleared, to be re-armed by the next open/ping/message
- stop() is the shutdown hook

============================================================
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..config import LIVENESS_INTERVAL_SECONDS
from .connection import ChannelConnection
from .registry import SubscriptionRegistry


logger = logging.getLogger(__name__)


class LivenessMonitor:
    """Single sweep task shared by every channel of one client."""

    def __init__(
        self,
        registry: SubscriptionRegistry,
        on_stale: Callable[[ChannelConnection], Awaitable[None]],
        interval_seconds: float = LIVENESS_INTERVAL_SECONDS,
    ):
        self._registry = registry
        self._on_stale = on_stale
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self.sweeps = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def ensure_started(self) -> bool:
        """
        Start the sweep task unless it already runs.

        Returns:
            True if this call started it
        """
        if self._task is not None:
            return False
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Liveness monitor started (interval {self._interval}s)")
        return True

    async def stop(self) -> None:
        """Cancel the sweep task."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Liveness monitor stopped")

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.sweep()

    async def sweep(self) -> int:
        """
        Inspect every channel once.

        Returns:
            Number of stale channels found
        """
        self.sweeps += 1
        stale = 0

        for channel_id, connection in self._registry.connections():
            # entry may have been replaced by an earlier reconnect in this sweep
            if self._registry.get(channel_id) is not connection or not connection.is_open:
                continue

            if connection.alive:
                connection.alive = False
                continue

            stale += 1
            logger.warning(f"Disconnected Channel: {connection.name} (no activity since last sweep)")
            await self._on_stale(connection)

        return stale
