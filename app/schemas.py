"""Pydantic schemas for the HTTP API layer and persisted records."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.readings import SensorSnapshot, Sentinel
from services.formatting import describe


class SensorEventKind(str, Enum):
    """Events delivered by the sensor link."""

    connected = "connected"
    disconnected = "disconnected"
    data_line = "data_line"


class SensorEventIn(BaseModel):
    kind: SensorEventKind
    line: Optional[str] = Field(
        default=None, description="Raw text line; required for data_line events."
    )


class SensorLinesIn(BaseModel):
    """A batch of raw lines, applied in order."""

    lines: List[str] = Field(default_factory=list)


class AmbientTemperatureIn(BaseModel):
    fahrenheit: Optional[float] = Field(
        default=None,
        allow_inf_nan=False,
        description="Weather temperature; null clears the fallback.",
    )


class SnapshotDisplayOut(BaseModel):
    date: str
    resistance: str
    temperature: str
    temperature_celsius: str
    moisture: str
    moisture_fill: float


class SnapshotOut(BaseModel):
    """Current sensor state together with its display strings."""

    connected: bool
    date_observed: Optional[datetime] = None
    raw_resistance_ohms: Optional[float] = None
    temperature_fahrenheit: Optional[float] = None
    ambient_temperature_fahrenheit: Optional[float] = None
    moisture_percent: Optional[float] = None
    resistance_sentinel: Sentinel
    temperature_sentinel: Sentinel
    display: SnapshotDisplayOut

    @classmethod
    def from_snapshot(cls, snapshot: SensorSnapshot) -> "SnapshotOut":
        display = describe(snapshot)
        return cls(
            connected=snapshot.connected,
            date_observed=snapshot.date_observed,
            raw_resistance_ohms=snapshot.raw_resistance_ohms,
            temperature_fahrenheit=snapshot.temperature_fahrenheit,
            ambient_temperature_fahrenheit=snapshot.ambient_temperature_fahrenheit,
            moisture_percent=snapshot.moisture_percent,
            resistance_sentinel=snapshot.resistance_sentinel,
            temperature_sentinel=snapshot.temperature_sentinel,
            display=SnapshotDisplayOut(
                date=display.date,
                resistance=display.resistance,
                temperature=display.temperature,
                temperature_celsius=display.temperature_celsius,
                moisture=display.moisture,
                moisture_fill=display.moisture_fill,
            ),
        )


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class SoilObservationRecord(BaseModel):
    """A saved observation. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    record_id: str
    site_name: str = Field(..., min_length=1)
    observed_at: datetime
    moisture: str = Field(..., description="Moisture as displayed when saved.")
    photo_key: Optional[str] = None
    coordinates: Optional[Coordinates] = None
