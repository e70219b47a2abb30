import asyncio
import json
import socket

import websockets

from iotpanel.core.config import Settings
from iotpanel.domain.models import ConnectionState
from iotpanel.services.session import DeviceSession, build_transport_factory

from conftest import SAMPLE_FRAME, settle


def board_settings(port: int) -> Settings:
    return Settings(
        _env_file=None,
        device_host="127.0.0.1",
        device_port=port,
        debounce_ms=10,
        poll_interval_ms=30,
        open_timeout_s=2.0,
        timezone="UTC",
    )


async def wait_for_state(session, state, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while session.connection.state is not state and loop.time() < deadline:
        await asyncio.sleep(0.01)
    return session.connection.state


def free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


async def test_round_trip_against_local_board():
    received = []

    async def board(ws):
        async for message in ws:
            received.append(json.loads(message))
            if received[-1]["type"] == "pollRequest":
                await ws.send(SAMPLE_FRAME)

    async with websockets.serve(board, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        cfg = board_settings(port)
        async with DeviceSession(cfg, build_transport_factory(cfg)) as s:
            await s.connection.connect()
            assert await wait_for_state(s, ConnectionState.CONNECTED) is ConnectionState.CONNECTED

            assert await s.set_servo(90)
            await settle(0.15)

            assert s.state.sensors.temperature == 22.5
            assert len(s.history) == 1
            assert {"type": "servo", "value": 90} in received

            await s.connection.disconnect()
            assert s.connection.transport is None
            assert s.connection.state is ConnectionState.DISCONNECTED


async def test_server_closing_link_disconnects():
    async def board(ws):
        await ws.close()

    async with websockets.serve(board, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        cfg = board_settings(port)
        async with DeviceSession(cfg, build_transport_factory(cfg)) as s:
            await s.connection.connect()
            await settle(0.2)
            assert s.connection.state is ConnectionState.DISCONNECTED
            assert not s.connection.poller.running


async def test_refused_connection_is_reported():
    cfg = board_settings(free_port())
    async with DeviceSession(cfg, build_transport_factory(cfg)) as s:
        await s.connection.connect()
        assert await wait_for_state(s, ConnectionState.DISCONNECTED) is ConnectionState.DISCONNECTED
        await settle(0.05)
        assert s.state.last_error is not None
        assert s.connection.transport is None
