from __future__ import annotations
import asyncio
import json
import logging
import math
import random
import time
from dataclasses import dataclass, field, asdict
from typing import Any, Literal, Optional

from ..core.errors import TransportError
from ..domain.interfaces import TransportFactory, TransportHandlers

logger = logging.getLogger(__name__)


PatternType = Literal["manual", "sine", "step", "random"]


@dataclass
class ChannelPattern:
    type: PatternType = "sine"
    baseline: float = 0.0
    amplitude: float = 0.0
    period_s: float = 300.0
    noise: float = 0.0


@dataclass
class SimDeviceConfig:
    temperature: ChannelPattern = field(default_factory=lambda: ChannelPattern("sine", 24.0, 3.0, 300.0, 0.2))
    humidity: ChannelPattern = field(default_factory=lambda: ChannelPattern("sine", 55.0, 10.0, 600.0, 0.5))
    gas: ChannelPattern = field(default_factory=lambda: ChannelPattern("random", 150.0, 40.0, 60.0, 0.0))
    ultrasonic: ChannelPattern = field(default_factory=lambda: ChannelPattern("step", 30.0, 20.0, 40.0, 1.0))
    infrared_probability: float = 0.1


class SimulatedDevice:
    """Stand-in for the board: answers polls with generated readings.

    Outlives individual connections, so actuator commands it received stay
    visible across reconnects like on the real hardware.
    """

    def __init__(self, cfg: Optional[SimDeviceConfig] = None) -> None:
        self.cfg = cfg or SimDeviceConfig()
        self._t0 = time.monotonic()
        self._malformed_pending = 0

        self.received: list[dict[str, Any]] = []
        self.actuators: dict[str, Any] = {"stepper": 0, "servo": 0, "lights": False}

    def inject_malformed(self, count: int = 1) -> None:
        self._malformed_pending += count

    def status(self) -> dict:
        return {
            "actuators": dict(self.actuators),
            "received": len(self.received),
            "malformed_pending": self._malformed_pending,
            "pattern": asdict(self.cfg),
        }

    def _channel(self, p: ChannelPattern, t: float) -> float:
        if p.type == "sine":
            v = p.baseline + p.amplitude * math.sin(2 * math.pi * t / max(p.period_s, 1.0))
        elif p.type == "step":
            phase = (t % max(p.period_s, 1.0)) / max(p.period_s, 1.0)
            v = p.baseline + (p.amplitude if phase >= 0.5 else -p.amplitude)
        elif p.type == "random":
            v = p.baseline + random.uniform(-p.amplitude, p.amplitude)
        else:
            v = p.baseline
        if p.noise > 0:
            v += random.uniform(-p.noise, p.noise)
        return max(0.0, v)

    def snapshot_frame(self) -> str:
        if self._malformed_pending > 0:
            self._malformed_pending -= 1
            return '{"temperature": "n/a", "humidity": '

        t = time.monotonic() - self._t0
        c = self.cfg
        return json.dumps({
            "temperature": round(self._channel(c.temperature, t), 1),
            "humidity": round(self._channel(c.humidity, t), 1),
            "gas": int(self._channel(c.gas, t)),
            "infrared": random.random() < c.infrared_probability,
            "ultrasonicDistance": int(self._channel(c.ultrasonic, t)),
        })

    def handle(self, text: str) -> Optional[str]:
        """Process one command frame; return the reply frame, if any."""
        try:
            msg = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("SIM device got unparseable frame: %r", text)
            return None

        self.received.append(msg)
        kind = msg.get("type")
        if kind == "pollRequest":
            return self.snapshot_frame()
        if kind in self.actuators:
            self.actuators[kind] = msg.get("value")
            logger.info("SIM device %s=%s", kind, self.actuators[kind])
        else:
            logger.warning("SIM device ignoring unknown command type=%s", kind)
        return None


class SimulatedTransport:
    def __init__(
        self,
        url: str,
        handlers: TransportHandlers,
        device: SimulatedDevice,
        response_delay_s: float = 0.02,
    ) -> None:
        self.url = url
        self._handlers = handlers
        self._device = device
        self._delay = response_delay_s

        self._open = False
        self._closed = False
        self._timers: set[asyncio.TimerHandle] = set()

    @property
    def is_open(self) -> bool:
        return self._open

    def start(self) -> None:
        self._schedule(self._handle_open)

    def _schedule(self, fn, *args) -> None:
        loop = asyncio.get_running_loop()
        handle: asyncio.TimerHandle

        def fire() -> None:
            self._timers.discard(handle)
            fn(*args)

        handle = loop.call_later(self._delay, fire)
        self._timers.add(handle)

    def _handle_open(self) -> None:
        if self._closed:
            return
        self._open = True
        self._handlers.on_open()

    def _deliver(self, frame: str) -> None:
        if self._open:
            self._handlers.on_message(frame)

    async def send(self, text: str) -> None:
        if not self._open:
            raise TransportError(f"Link to {self.url} is not open")
        reply = self._device.handle(text)
        if reply is not None:
            self._schedule(self._deliver, reply)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._open = False
        for handle in self._timers:
            handle.cancel()
        self._timers.clear()
        self._handlers.on_close()


def sim_transport_factory(device: SimulatedDevice, response_delay_s: float = 0.02) -> TransportFactory:
    def factory(url: str, handlers: TransportHandlers) -> SimulatedTransport:
        logger.info("Using simulated device for %s", url)
        return SimulatedTransport(url, handlers, device, response_delay_s)

    return factory
