"""Display strings for a sensor snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.readings import SensorSnapshot, Sentinel
from services.calibration import fahrenheit_to_celsius

INVALID = "-------"
SATURATED_RESISTANCE = "INF kΩ"
SATURATED_MOISTURE = "0%"
DISCONNECTED = "Disconnected"


@dataclass(frozen=True)
class SnapshotDisplay:
    date: str
    resistance: str
    temperature: str
    temperature_celsius: str
    moisture: str
    moisture_fill: float


def format_date(value: datetime) -> str:
    zone = value.strftime("%Z")
    text = f"{value:%b} {value.day}, {value:%Y, %I:%M %p}"
    return f"{text} {zone}" if zone else text


def format_resistance(snapshot: SensorSnapshot) -> str:
    if snapshot.resistance_sentinel is Sentinel.saturated:
        return SATURATED_RESISTANCE
    if snapshot.raw_resistance_ohms is None:
        return INVALID
    return f"{snapshot.raw_resistance_ohms / 1000:0.1f} kΩ"


def format_temperature(snapshot: SensorSnapshot) -> str:
    if snapshot.temperature_sentinel is Sentinel.disconnected:
        return DISCONNECTED
    if snapshot.temperature_fahrenheit is None:
        return INVALID
    return f"{snapshot.temperature_fahrenheit:0.1f}℉"


def format_temperature_celsius(snapshot: SensorSnapshot) -> str:
    if snapshot.temperature_fahrenheit is None:
        return INVALID
    return f"{fahrenheit_to_celsius(snapshot.temperature_fahrenheit):0.1f}℃"


def format_moisture(snapshot: SensorSnapshot) -> str:
    if snapshot.resistance_sentinel is Sentinel.saturated:
        return SATURATED_MOISTURE
    if snapshot.moisture_percent is None:
        return INVALID
    return f"{snapshot.moisture_percent:0.1f}%"


def moisture_fill(moisture_percent: Optional[float]) -> float:
    """Moisture clamped to the 0-100 range of a gauge."""
    if moisture_percent is None:
        return 0.0
    return min(max(moisture_percent, 0.0), 100.0)


def describe(snapshot: SensorSnapshot) -> SnapshotDisplay:
    date = format_date(snapshot.date_observed) if snapshot.date_observed else INVALID
    return SnapshotDisplay(
        date=date,
        resistance=format_resistance(snapshot),
        temperature=format_temperature(snapshot),
        temperature_celsius=format_temperature_celsius(snapshot),
        moisture=format_moisture(snapshot),
        moisture_fill=moisture_fill(snapshot.moisture_percent),
    )
