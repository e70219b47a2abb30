from __future__ import annotations
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..domain.models import Command

logger = logging.getLogger(__name__)


class Poller:
    def __init__(self, send: Callable[[Command], Awaitable[object]], interval_s: float = 2.0) -> None:
        self._send = send
        self._interval_s = interval_s

        self._task: Optional[asyncio.Task] = None
        self._retired: set[asyncio.Task] = set()
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None

    def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run(), name="poll_loop")

    def stop(self) -> None:
        """Cancel the loop right away. Safe to call from inside a poll."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        # keep a reference until the cancellation has been delivered
        self._retired.add(task)
        task.add_done_callback(self._retired.discard)

    async def wait_stopped(self) -> None:
        if self._retired:
            await asyncio.gather(*self._retired, return_exceptions=True)

    async def _run(self) -> None:
        logger.info("Poll loop started (interval=%.3fs)", self._interval_s)
        try:
            while True:
                await asyncio.sleep(self._interval_s)
                self.ticks += 1
                try:
                    await self._send(Command.poll())
                except Exception as e:
                    logger.exception("Poll request failed: %s", e)
        finally:
            logger.info("Poll loop stopped")
