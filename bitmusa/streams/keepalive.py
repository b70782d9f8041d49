"""
Streaming - Listen Key Keeper.

Renews a listen key on a fixed period while a private channel is open.
A failed renewal is logged and counted; the next period tries again.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..config import LISTEN_KEY_REFRESH_SECONDS
from ..errors import BitmusaError


logger = logging.getLogger(__name__)


class ListenKeyKeeper:
    """Periodic listen key renewal for one market."""

    def __init__(
        self,
        name: str,
        renew: Callable[[], Awaitable[None]],
        interval_seconds: float = LISTEN_KEY_REFRESH_SECONDS,
    ):
        """
        Initialize keeper.

        Args:
            name: Label for log lines (spot/future)
            renew: Coroutine function extending the listen key
            interval_seconds: Renewal period
        """
        self._name = name
        self._renew = renew
        self._interval = interval_seconds
        self._task: Optional[asyncio.Task] = None

        self.renewals = 0
        self.failures = 0
        self.last_error: Optional[BitmusaError] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """
        Start renewing unless already running.

        Returns:
            True if this call started the timer
        """
        if self.is_running:
            return False
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Listen key keep-alive started for {self._name} (every {self._interval}s)")
        return True

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info(f"Listen key keep-alive stopped for {self._name}")

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.renew_once()

    async def renew_once(self) -> bool:
        """
        Run one renewal.

        Returns:
            True on success
        """
        try:
            await self._renew()
        except BitmusaError as e:
            self.failures += 1
            self.last_error = e
            logger.error(f"Listen key renewal failed for {self._name}: {e}")
            return False

        self.renewals += 1
        logger.debug(f"Listen key renewed for {self._name}")
        return True
