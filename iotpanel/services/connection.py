from __future__ import annotations
import asyncio
import logging
from functools import partial
from typing import Optional

from ..core.config import Settings, settings as default_settings
from ..core.errors import TransportError
from ..domain.interfaces import Transport, TransportFactory, TransportHandlers
from ..domain.models import ConnectionState
from ..domain.state import StateStore
from .dispatcher import CommandDispatcher
from .ingest import IngestPipeline
from .poller import Poller

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Owns the single device link and the connection state.

    Every connect attempt gets a generation number. Transport callbacks carry
    the generation they were created for and are ignored once a newer attempt
    or an explicit disconnect has superseded it.

    Use as ``async with`` (or call ``aclose()``) so the socket is always
    released when the owner goes away.
    """

    def __init__(
        self,
        state: StateStore,
        ingest: IngestPipeline,
        transport_factory: TransportFactory,
        cfg: Settings = default_settings,
    ) -> None:
        self._state = state
        self._ingest = ingest
        self._factory = transport_factory
        self._cfg = cfg

        self._transport: Optional[Transport] = None
        self._generation = 0

        self.dispatcher = CommandDispatcher(self)
        self.poller = Poller(self.dispatcher.send, cfg.poll_interval_s)

    @property
    def state(self) -> ConnectionState:
        return self._state.connection

    @property
    def transport(self) -> Optional[Transport]:
        return self._transport

    @property
    def url(self) -> str:
        return self._cfg.websocket_url

    async def __aenter__(self) -> ConnectionManager:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def connect(self) -> None:
        if self.state is ConnectionState.CONNECTING:
            logger.info("Connect ignored: attempt to %s already in flight", self.url)
            return

        # Only one link at a time
        if self._transport is not None:
            await self.disconnect()

        self._generation += 1
        gen = self._generation
        handlers = TransportHandlers(
            on_open=partial(self._handle_open, gen),
            on_close=partial(self._handle_close, gen),
            on_error=partial(self._handle_error, gen),
            on_message=partial(self._handle_message, gen),
        )

        self._state.set_connection(ConnectionState.CONNECTING)
        logger.info("Connecting to %s", self.url)
        try:
            self._transport = self._factory(self.url, handlers)
            self._transport.start()
        except Exception as e:
            self._handle_error(gen, TransportError(f"Unable to connect to {self.url}: {e}"))

    async def disconnect(self) -> None:
        transport = self._transport
        if transport is None:
            return
        # Late callbacks from the closing transport are stale from here on
        self._generation += 1
        self._enter_disconnected()
        logger.info("Disconnected from %s", self.url)
        await transport.close()

    async def toggle(self) -> None:
        if self.state is ConnectionState.CONNECTED:
            await self.disconnect()
        else:
            await self.connect()

    async def aclose(self) -> None:
        await self.disconnect()
        self.poller.stop()
        self._ingest.cancel()
        await self.poller.wait_stopped()

    async def handle_transport_error(self, exc: Exception, transport: Optional[Transport] = None) -> None:
        """Report a failure seen outside the transport callbacks (e.g. a send)."""
        if transport is not None and transport is not self._transport:
            logger.debug("Ignoring error from superseded transport: %s", exc)
            return
        broken = self._transport
        # broken link callbacks are stale from here on
        self._generation += 1
        gen = self._generation
        try:
            if broken is not None:
                # the caller may be the poll task, which the error path cancels
                await asyncio.shield(broken.close())
        finally:
            self._handle_error(gen, exc)

    def _is_current(self, gen: int) -> bool:
        return gen == self._generation

    def _handle_open(self, gen: int) -> None:
        if not self._is_current(gen):
            return
        self._state.set_connection(ConnectionState.CONNECTED)
        logger.info("Connected to device at %s", self.url)
        self.poller.start()

    def _handle_close(self, gen: int) -> None:
        if not self._is_current(gen):
            return
        self._generation += 1
        self._enter_disconnected()
        logger.info("Connection to %s closed", self.url)

    def _handle_error(self, gen: int, exc: Exception) -> None:
        if not self._is_current(gen):
            logger.debug("Ignoring stale transport error: %s", exc)
            return
        self._generation += 1
        logger.warning("Transport error on %s: %s", self.url, exc)
        self._state.record_error(exc)
        self._enter_disconnected()

    def _handle_message(self, gen: int, payload: str) -> None:
        if not self._is_current(gen):
            return
        self._ingest.on_raw_message(payload)

    def _enter_disconnected(self) -> None:
        self.poller.stop()
        self._ingest.cancel()
        self._transport = None
        self._state.set_connection(ConnectionState.DISCONNECTED)
