from __future__ import annotations
import json

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.errors import DecodeError
from ..domain.models import Command, SensorSnapshot


class SnapshotFrame(BaseModel):
    """Inbound frame as the board sends it (camelCase, no envelope)."""

    model_config = ConfigDict(extra="ignore", strict=True)

    temperature: float
    humidity: float
    gas: int
    infrared: bool
    ultrasonic_distance: int = Field(alias="ultrasonicDistance")


def decode_snapshot(payload: str | bytes) -> SensorSnapshot:
    try:
        frame = SnapshotFrame.model_validate_json(payload)
    except ValidationError as e:
        raise DecodeError(f"Invalid snapshot frame: {e.error_count()} error(s): {e.errors()[0]['msg']}", payload) from e
    return SensorSnapshot(
        temperature=frame.temperature,
        humidity=frame.humidity,
        gas=frame.gas,
        infrared=frame.infrared,
        ultrasonic_distance=frame.ultrasonic_distance,
    )


def encode_command(command: Command) -> str:
    # value is omitted for pollRequest; everything else goes out as given
    frame: dict = {"type": command.type}
    if command.value is not None:
        frame["value"] = command.value
    return json.dumps(frame, separators=(",", ":"))
