from __future__ import annotations

import asyncio

import pytest

from iotpanel.core.config import Settings
from iotpanel.domain.interfaces import TransportHandlers
from iotpanel.services.session import DeviceSession


SAMPLE_FRAME = '{"temperature":22.5,"humidity":60,"gas":120,"infrared":false,"ultrasonicDistance":30}'


class FakeTransport:
    """Transport driven by the test instead of a socket."""

    def __init__(self, url: str, handlers: TransportHandlers) -> None:
        self.url = url
        self.handlers = handlers
        self.started = False
        self.opened = False
        self.closed = False
        self.close_calls = 0
        self.close_completed = 0
        self.slow_close = False
        self.sent: list[str] = []
        self.fail_send: Exception | None = None

    @property
    def is_open(self) -> bool:
        return self.opened and not self.closed

    def start(self) -> None:
        self.started = True

    # --- events the "device" produces ---
    def open(self) -> None:
        self.opened = True
        self.handlers.on_open()

    def receive(self, payload: str) -> None:
        self.handlers.on_message(payload)

    def drop(self) -> None:
        self.closed = True
        self.handlers.on_close()

    def fail(self, exc: Exception) -> None:
        self.closed = True
        self.handlers.on_error(exc)
        self.handlers.on_close()

    # --- Transport API ---
    async def send(self, text: str) -> None:
        if self.fail_send is not None:
            raise self.fail_send
        self.sent.append(text)

    async def close(self) -> None:
        self.close_calls += 1
        if self.slow_close:
            # closing handshake with the board
            await asyncio.sleep(0)
        if not self.closed:
            self.closed = True
            self.handlers.on_close()
        self.close_completed += 1


class FakeTransportFactory:
    def __init__(self) -> None:
        self.transports: list[FakeTransport] = []

    def __call__(self, url: str, handlers: TransportHandlers) -> FakeTransport:
        t = FakeTransport(url, handlers)
        self.transports.append(t)
        return t

    @property
    def last(self) -> FakeTransport:
        return self.transports[-1]


async def settle(seconds: float = 0.05) -> None:
    await asyncio.sleep(seconds)


@pytest.fixture
def cfg() -> Settings:
    return Settings(
        _env_file=None,
        device_host="10.0.0.7",
        device_port=81,
        debounce_ms=10,
        poll_interval_ms=20,
        history_capacity=20,
        timezone="UTC",
    )


@pytest.fixture
def factory() -> FakeTransportFactory:
    return FakeTransportFactory()


@pytest.fixture
async def session(cfg, factory):
    async with DeviceSession(cfg, factory) as s:
        yield s
