"""Domain models for the sensor interpretation pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class Sentinel(str, Enum):
    """Device states reported in place of a physical measurement."""

    none = "none"
    disconnected = "disconnected"
    saturated = "saturated"


@dataclass(frozen=True, slots=True)
class ResistanceOhms:
    value: float


@dataclass(frozen=True, slots=True)
class ResistanceSaturated:
    """Open circuit: the probe reports infinite resistance."""


@dataclass(frozen=True, slots=True)
class TemperatureFahrenheit:
    value: float


@dataclass(frozen=True, slots=True)
class TemperatureDisconnected:
    """Thermistor error code reported by the firmware."""


@dataclass(frozen=True, slots=True)
class MalformedReading:
    """A recognized tag whose value could not be converted."""

    tag: str
    raw: str


@dataclass(frozen=True, slots=True)
class Unrecognized:
    pass


ParsedReading = Union[
    ResistanceOhms,
    ResistanceSaturated,
    TemperatureFahrenheit,
    TemperatureDisconnected,
    MalformedReading,
    Unrecognized,
]


@dataclass(frozen=True, slots=True)
class Connected:
    pass


@dataclass(frozen=True, slots=True)
class Disconnected:
    pass


@dataclass(frozen=True, slots=True)
class DataLine:
    text: str


SensorEvent = Union[Connected, Disconnected, DataLine]


@dataclass(frozen=True, slots=True)
class SensorSnapshot:
    """Best-known sensor state. Replaced as a whole, never mutated in place."""

    date_observed: Optional[datetime] = None
    raw_resistance_ohms: Optional[float] = None
    temperature_fahrenheit: Optional[float] = None
    ambient_temperature_fahrenheit: Optional[float] = None
    moisture_percent: Optional[float] = None
    resistance_sentinel: Sentinel = Sentinel.none
    temperature_sentinel: Sentinel = Sentinel.none
    connected: bool = False

    @property
    def effective_temperature_fahrenheit(self) -> Optional[float]:
        """Sensor temperature when valid, otherwise the ambient fallback."""
        if self.temperature_fahrenheit is not None:
            return self.temperature_fahrenheit
        return self.ambient_temperature_fahrenheit
