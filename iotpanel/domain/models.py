from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal, Optional, Union


@dataclass(frozen=True)
class SensorSnapshot:
    temperature: float = 0.0
    humidity: float = 0.0
    gas: int = 0  # ppm
    infrared: bool = False
    ultrasonic_distance: int = 0  # cm


@dataclass(frozen=True)
class ActuatorState:
    stepper_angle_deg: int = 0  # 0..360
    servo_angle_deg: int = 0    # 0..180
    lights_on: bool = False


@dataclass(frozen=True)
class HistoryEntry:
    snapshot: SensorSnapshot
    ts: datetime = field(compare=False)

    @property
    def timestamp_label(self) -> str:
        return self.ts.strftime("%H:%M:%S")

    def same_readings(self, other: HistoryEntry) -> bool:
        return self.snapshot == other.snapshot


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


CommandType = Literal["stepper", "servo", "lights", "pollRequest"]
CommandValue = Union[bool, int, float]


@dataclass(frozen=True)
class Command:
    type: CommandType
    value: Optional[CommandValue] = None

    @classmethod
    def stepper(cls, angle: CommandValue) -> Command:
        return cls("stepper", angle)

    @classmethod
    def servo(cls, angle: CommandValue) -> Command:
        return cls("servo", angle)

    @classmethod
    def lights(cls, on: bool) -> Command:
        return cls("lights", on)

    @classmethod
    def poll(cls) -> Command:
        return cls("pollRequest")
