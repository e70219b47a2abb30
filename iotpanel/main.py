from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .core.config import settings
from .core.log import configure_logging

from .api.routes import router as api_router
import iotpanel.api.routes as routes_module

from .drivers.device_sim import SimulatedDevice
from .services.session import DeviceSession, build_transport_factory


logger = logging.getLogger(__name__)


# --- Singletons ---
sim_device: SimulatedDevice | None = None
if settings.transport_mode.lower() == "sim":
    sim_device = SimulatedDevice()

session: DeviceSession | None = None


def get_session() -> DeviceSession:
    assert session is not None
    return session


def get_sim_device() -> SimulatedDevice:
    if sim_device is None:
        raise RuntimeError("Sim device not available (transport_mode is not 'sim').")
    return sim_device


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info(
        "Starting %s (device=%s mode=%s)",
        settings.app_name, settings.websocket_url, settings.transport_mode,
    )

    global session
    session = DeviceSession(settings, build_transport_factory(settings, sim_device))
    if settings.auto_connect:
        await session.connection.connect()

    try:
        yield
    finally:
        # Never leave the socket to the board open
        await session.aclose()
        session = None
        logger.info("Shutdown complete")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Make the dependency functions in routes resolve to the real ones
app.dependency_overrides[routes_module.get_session] = get_session
app.dependency_overrides[routes_module.get_sim_device] = get_sim_device

app.include_router(api_router, prefix="/api")
