import httpx
import pytest
from fastapi import FastAPI

import iotpanel.api.routes as routes_module
from iotpanel.api.routes import router

from conftest import SAMPLE_FRAME, settle


@pytest.fixture
async def client(session):
    app = FastAPI()
    app.dependency_overrides[routes_module.get_session] = lambda: session
    app.include_router(router, prefix="/api")
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://panel") as c:
        yield c


async def test_live_defaults(client):
    resp = await client.get("/api/live")
    assert resp.status_code == 200
    body = resp.json()
    assert body["connection"] == "disconnected"
    assert body["device_url"] == "ws://10.0.0.7:81"
    assert body["history_len"] == 0


async def test_connect_and_history(client, session, factory):
    resp = await client.post("/api/connection/toggle")
    assert resp.json()["connection"] == "connecting"
    factory.last.open()
    factory.last.receive(SAMPLE_FRAME)
    await settle()

    body = (await client.get("/api/history")).json()
    assert body["capacity"] == 20
    assert len(body["rows"]) == 1
    assert body["rows"][0]["gas"] == 120

    resp = await client.post("/api/connection/disconnect")
    assert resp.json()["connection"] == "disconnected"


async def test_stepper_command(client, factory):
    await client.post("/api/connection/connect")
    factory.last.open()
    resp = await client.post("/api/actuators/stepper", json={"angle": 270})
    assert resp.status_code == 200
    assert resp.json()["sent"] is True
    assert resp.json()["actuators"]["stepper_angle_deg"] == 270


@pytest.mark.parametrize(
    "path,body",
    [
        ("/api/actuators/stepper", {"angle": 400}),
        ("/api/actuators/servo", {"angle": -1}),
        ("/api/actuators/servo", {"angle": 181}),
    ],
)
async def test_out_of_range_rejected_at_api(client, session, path, body):
    resp = await client.post(path, json=body)
    assert resp.status_code == 422
    assert session.state.actuators.stepper_angle_deg == 0


async def test_lights_offline_reports_dropped(client, session):
    resp = await client.post("/api/actuators/lights/toggle")
    assert resp.json() == {
        "ok": True,
        "sent": False,
        "actuators": {"stepper_angle_deg": 0, "servo_angle_deg": 0, "lights_on": True},
    }
    resp = await client.post("/api/actuators/lights", json={"on": False})
    assert resp.json()["actuators"]["lights_on"] is False
