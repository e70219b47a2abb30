import json

from iotpanel.core.config import Settings
from iotpanel.domain.models import ConnectionState
from iotpanel.drivers.device_sim import SimulatedDevice, sim_transport_factory
from iotpanel.services.codec import decode_snapshot
from iotpanel.services.session import DeviceSession, build_transport_factory

from conftest import settle


def test_snapshot_frame_decodes():
    device = SimulatedDevice()
    snap = decode_snapshot(device.snapshot_frame())
    assert snap.temperature >= 0
    assert isinstance(snap.ultrasonic_distance, int)


def test_records_actuator_commands():
    device = SimulatedDevice()
    assert device.handle(json.dumps({"type": "servo", "value": 90})) is None
    assert device.handle("not json") is None
    assert device.actuators["servo"] == 90
    assert len(device.received) == 1


def test_malformed_injection():
    device = SimulatedDevice()
    device.inject_malformed()
    reply = device.handle(json.dumps({"type": "pollRequest"}))
    assert reply is not None
    assert "n/a" in reply
    assert device.status()["malformed_pending"] == 0


async def test_session_against_sim_device(cfg):
    device = SimulatedDevice()
    async with DeviceSession(cfg, sim_transport_factory(device, response_delay_s=0.005)) as s:
        await s.connection.connect()
        await settle(0.02)
        assert s.connection.state is ConnectionState.CONNECTED

        await s.set_stepper(200)
        assert device.actuators["stepper"] == 200

        # poll every 20ms, reply after 5ms, debounce 10ms
        await settle(0.12)
        assert len(s.history) >= 1
        assert s.state.last_error is None

        await s.connection.disconnect()
        assert s.connection.state is ConnectionState.DISCONNECTED
        received = len(device.received)
        await settle(0.06)
        assert len(device.received) == received


async def test_sim_mode_is_selected_from_settings():
    cfg = Settings(_env_file=None, transport_mode="sim", sim_response_delay_ms=1, timezone="UTC")
    device = SimulatedDevice()
    async with DeviceSession(cfg, build_transport_factory(cfg, device)) as s:
        await s.connection.connect()
        await settle(0.02)
        assert s.state.connected
