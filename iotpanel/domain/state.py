from __future__ import annotations
import logging
from typing import Any, Callable, Optional

from .models import ActuatorState, ConnectionState, SensorSnapshot

logger = logging.getLogger(__name__)

Listener = Callable[[str], None]


class StateStore:
    """Live view of the device shared with the rendering layer.

    Each field has a single writer: connection state belongs to the
    connection manager, sensors to the ingest pipeline and actuators to the
    session. Everybody else reads the properties or subscribes.
    """

    def __init__(self) -> None:
        self._sensors = SensorSnapshot()
        self._actuators = ActuatorState()
        self._connection = ConnectionState.DISCONNECTED
        self._last_error: Optional[str] = None
        self._listeners: list[Listener] = []

    @property
    def sensors(self) -> SensorSnapshot:
        return self._sensors

    @property
    def actuators(self) -> ActuatorState:
        return self._actuators

    @property
    def connection(self) -> ConnectionState:
        return self._connection

    @property
    def connected(self) -> bool:
        return self._connection is ConnectionState.CONNECTED

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, topic: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(topic)
            except Exception:
                logger.exception("State listener failed on topic=%s", topic)

    def set_sensors(self, snapshot: SensorSnapshot) -> None:
        self._sensors = snapshot
        self._notify("sensors")

    def set_actuators(self, actuators: ActuatorState) -> None:
        self._actuators = actuators
        self._notify("actuators")

    def set_connection(self, state: ConnectionState) -> bool:
        if state is self._connection:
            return False
        self._connection = state
        self._notify("connection")
        return True

    def record_error(self, error: Exception | str) -> None:
        self._last_error = str(error)
        self._notify("error")

    def snapshot(self) -> dict[str, Any]:
        s = self._sensors
        a = self._actuators
        return {
            "connection": self._connection.value,
            "sensors": {
                "temperature": s.temperature,
                "humidity": s.humidity,
                "gas": s.gas,
                "infrared": s.infrared,
                "ultrasonic_distance": s.ultrasonic_distance,
            },
            "actuators": {
                "stepper_angle_deg": a.stepper_angle_deg,
                "servo_angle_deg": a.servo_angle_deg,
                "lights_on": a.lights_on,
            },
            "last_error": self._last_error,
        }
