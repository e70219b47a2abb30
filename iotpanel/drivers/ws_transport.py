from __future__ import annotations

import asyncio
import logging
from typing import Optional

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, WebSocketException

from ..core.errors import TransportError
from ..domain.interfaces import TransportHandlers

logger = logging.getLogger(__name__)


class WebSocketTransport:
    """Client link to the board's WebSocket server.

    One instance is one connection attempt. ``start()`` spawns the reader
    task; events come back through ``handlers``. ``on_close`` always fires
    exactly once when the task ends, after ``on_error`` if it failed.
    """

    def __init__(self, url: str, handlers: TransportHandlers, open_timeout: float = 5.0) -> None:
        self.url = url
        self._handlers = handlers
        self._open_timeout = open_timeout

        self._ws: Optional[websockets.ClientConnection] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("Transport already started")
        self._task = asyncio.create_task(self._run(), name=f"ws_reader {self.url}")

    async def _run(self) -> None:
        try:
            async with websockets.connect(
                self.url,
                open_timeout=self._open_timeout,
                # board firmware does not answer pings reliably
                ping_interval=None,
            ) as ws:
                self._ws = ws
                self._handlers.on_open()
                async for message in ws:
                    self._handlers.on_message(message)
        except ConnectionClosedOK:
            pass
        except ConnectionClosed as e:
            self._handlers.on_error(TransportError(f"Connection lost: {e}"))
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            self._handlers.on_error(TransportError(f"WebSocket failure on {self.url}: {e!r}"))
        finally:
            self._ws = None
            self._handlers.on_close()

    async def send(self, text: str) -> None:
        ws = self._ws
        if ws is None:
            raise TransportError(f"Link to {self.url} is not open")
        try:
            await ws.send(text)
        except (ConnectionClosed, OSError) as e:
            raise TransportError(f"Send failed on {self.url}: {e}") from e

    async def close(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        ws = self._ws
        if ws is not None:
            try:
                await ws.close()
            except (OSError, WebSocketException) as e:
                logger.warning("Error while closing %s: %s", self.url, e)
        else:
            # still in the handshake
            task.cancel()
        await asyncio.gather(task, return_exceptions=True)
