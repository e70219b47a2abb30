from __future__ import annotations
from pydantic import BaseModel, Field


class StepperRequest(BaseModel):
    angle: int = Field(ge=0, le=360)


class ServoRequest(BaseModel):
    angle: int = Field(ge=0, le=180)


class LightsRequest(BaseModel):
    on: bool


class SimMalformedRequest(BaseModel):
    count: int = Field(default=1, ge=1, le=100)
