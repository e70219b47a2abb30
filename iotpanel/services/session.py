from __future__ import annotations
import dataclasses
import logging
from functools import partial
from typing import Optional

from ..core.config import Settings, settings as default_settings
from ..core.timeutil import now_local
from ..domain.history import HistoryBuffer
from ..domain.interfaces import TransportFactory, TransportHandlers
from ..domain.models import ActuatorState, Command
from ..domain.state import StateStore
from ..drivers.device_sim import SimulatedDevice, sim_transport_factory
from ..drivers.ws_transport import WebSocketTransport
from .connection import ConnectionManager
from .ingest import IngestPipeline

logger = logging.getLogger(__name__)


def build_transport_factory(cfg: Settings, device: Optional[SimulatedDevice] = None) -> TransportFactory:
    if cfg.transport_mode.lower() == "sim":
        return sim_transport_factory(device or SimulatedDevice(), cfg.sim_response_delay_ms / 1000.0)
    return partial(_ws_factory, open_timeout=cfg.open_timeout_s)


def _ws_factory(url: str, handlers: TransportHandlers, open_timeout: float) -> WebSocketTransport:
    return WebSocketTransport(url, handlers, open_timeout=open_timeout)


class DeviceSession:
    """Everything the panel needs for one device, wired together."""

    def __init__(
        self,
        cfg: Settings = default_settings,
        transport_factory: Optional[TransportFactory] = None,
    ) -> None:
        self.cfg = cfg
        self.state = StateStore()
        self.history = HistoryBuffer(cfg.history_capacity)
        self.ingest = IngestPipeline(
            self.state,
            self.history,
            debounce_s=cfg.debounce_s,
            clock=partial(now_local, cfg.timezone),
        )
        self.connection = ConnectionManager(
            self.state,
            self.ingest,
            transport_factory or build_transport_factory(cfg),
            cfg=cfg,
        )

    @property
    def dispatcher(self):
        return self.connection.dispatcher

    async def __aenter__(self) -> DeviceSession:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.connection.aclose()
        logger.info("Session for %s closed", self.cfg.websocket_url)

    # --- actuators: local state first, then best-effort send ---

    async def set_stepper(self, angle: int) -> bool:
        self._update_actuators(stepper_angle_deg=angle)
        return await self.dispatcher.send(Command.stepper(angle))

    async def set_servo(self, angle: int) -> bool:
        self._update_actuators(servo_angle_deg=angle)
        return await self.dispatcher.send(Command.servo(angle))

    async def set_lights(self, on: bool) -> bool:
        self._update_actuators(lights_on=on)
        return await self.dispatcher.send(Command.lights(on))

    async def toggle_lights(self) -> bool:
        return await self.set_lights(not self.state.actuators.lights_on)

    def _update_actuators(self, **changes) -> ActuatorState:
        new = dataclasses.replace(self.state.actuators, **changes)
        self.state.set_actuators(new)
        return new
