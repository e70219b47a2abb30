from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from ..drivers.device_sim import SimulatedDevice
from ..services.session import DeviceSession
from .schemas import LightsRequest, ServoRequest, SimMalformedRequest, StepperRequest

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependency getters ---
# main.py points these at the real objects via app.dependency_overrides.
def get_session() -> DeviceSession:  # overridden in main
    raise RuntimeError("Session dependency not configured")

def get_sim_device() -> SimulatedDevice:  # overridden in main
    raise RuntimeError("Simulated device dependency not configured")


def _connection_reply(svc: DeviceSession) -> dict:
    return {"ok": True, "connection": svc.state.connection.value}


def _actuator_reply(svc: DeviceSession, sent: bool) -> dict:
    # sent=False means the command was dropped (no open link)
    return {"ok": True, "sent": sent, "actuators": svc.state.snapshot()["actuators"]}


@router.get("/live")
async def get_live(svc: DeviceSession = Depends(get_session)):
    out = svc.state.snapshot()
    out["app"] = svc.cfg.app_name
    out["device_url"] = svc.cfg.websocket_url
    out["history_len"] = len(svc.history)
    return out


@router.get("/history")
async def get_history(svc: DeviceSession = Depends(get_session)):
    rows = []
    for e in svc.history.entries():
        s = e.snapshot
        rows.append({
            "timestamp": e.timestamp_label,
            "ts": e.ts.isoformat(),
            "temperature": s.temperature,
            "humidity": s.humidity,
            "gas": s.gas,
            "infrared": s.infrared,
            "ultrasonic_distance": s.ultrasonic_distance,
        })
    return {"capacity": svc.history.capacity, "rows": rows}


@router.post("/connection/connect")
async def connection_connect(svc: DeviceSession = Depends(get_session)):
    await svc.connection.connect()
    return _connection_reply(svc)


@router.post("/connection/disconnect")
async def connection_disconnect(svc: DeviceSession = Depends(get_session)):
    await svc.connection.disconnect()
    return _connection_reply(svc)


@router.post("/connection/toggle")
async def connection_toggle(svc: DeviceSession = Depends(get_session)):
    await svc.connection.toggle()
    return _connection_reply(svc)


@router.post("/actuators/stepper")
async def actuator_stepper(req: StepperRequest, svc: DeviceSession = Depends(get_session)):
    sent = await svc.set_stepper(req.angle)
    return _actuator_reply(svc, sent)


@router.post("/actuators/servo")
async def actuator_servo(req: ServoRequest, svc: DeviceSession = Depends(get_session)):
    sent = await svc.set_servo(req.angle)
    return _actuator_reply(svc, sent)


@router.post("/actuators/lights")
async def actuator_lights(req: LightsRequest, svc: DeviceSession = Depends(get_session)):
    sent = await svc.set_lights(req.on)
    return _actuator_reply(svc, sent)


@router.post("/actuators/lights/toggle")
async def actuator_lights_toggle(svc: DeviceSession = Depends(get_session)):
    sent = await svc.toggle_lights()
    return _actuator_reply(svc, sent)


# --- Simulation endpoints ---
@router.get("/sim/status")
async def sim_status(device: SimulatedDevice = Depends(get_sim_device)):
    return device.status()


@router.post("/sim/malformed")
async def sim_malformed(req: SimMalformedRequest, device: SimulatedDevice = Depends(get_sim_device)):
    device.inject_malformed(req.count)
    return {"ok": True, "malformed_pending": device.status()["malformed_pending"]}
