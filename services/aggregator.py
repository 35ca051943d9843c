"""Latest-value aggregation of parsed sensor readings."""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import datetime, timezone
from threading import Lock
from typing import Optional

from models.readings import (
    Connected,
    DataLine,
    Disconnected,
    MalformedReading,
    ParsedReading,
    ResistanceOhms,
    ResistanceSaturated,
    SensorEvent,
    SensorSnapshot,
    Sentinel,
    TemperatureDisconnected,
    TemperatureFahrenheit,
    Unrecognized,
)
from services.calibration import (
    DEFAULT_CONSTANTS,
    CalibrationConstants,
    CalibrationError,
    moisture_from_resistance,
)
from services.parser import parse_line

logger = logging.getLogger(__name__)


class ReadingAggregator:
    """Owns the current ``SensorSnapshot`` and its transitions.

    Every update builds a new frozen snapshot and swaps it in under one lock,
    so readers always see a complete pre- or post-update state.
    """

    def __init__(
        self,
        constants: CalibrationConstants = DEFAULT_CONSTANTS,
        ambient_temperature_fahrenheit: Optional[float] = None,
    ) -> None:
        self.constants = constants
        self.default_ambient_fahrenheit = ambient_temperature_fahrenheit
        self._lock = Lock()
        self._snapshot = SensorSnapshot(
            ambient_temperature_fahrenheit=ambient_temperature_fahrenheit
        )

    def snapshot(self) -> SensorSnapshot:
        with self._lock:
            return self._snapshot

    def apply(
        self, reading: ParsedReading, observed_at: Optional[datetime] = None
    ) -> SensorSnapshot:
        """Fold one parsed reading into the snapshot and return the result."""
        if isinstance(reading, (Unrecognized, MalformedReading)):
            return self.snapshot()

        timestamp = observed_at or datetime.now(timezone.utc)
        with self._lock:
            self._snapshot = self._transition(self._snapshot, reading, timestamp)
            return self._snapshot

    def ingest_line(
        self, line: str, observed_at: Optional[datetime] = None
    ) -> SensorSnapshot:
        return self.apply(parse_line(line), observed_at=observed_at)

    def set_ambient_temperature(self, fahrenheit: Optional[float]) -> SensorSnapshot:
        """Record an externally supplied temperature used when the probe has none.

        Non-finite values are ignored and leave the current fallback in place.
        """
        if fahrenheit is not None and not math.isfinite(fahrenheit):
            logger.warning(
                "Ignoring ambient temperature",
                extra={"temperature_f": fahrenheit, "reason": "not a finite number"},
            )
            return self.snapshot()
        with self._lock:
            self._snapshot = replace(
                self._snapshot, ambient_temperature_fahrenheit=fahrenheit
            )
            return self._snapshot

    def reset(self, connected: bool = False) -> SensorSnapshot:
        """Drop every reading at once; only the configured ambient default survives."""
        with self._lock:
            self._snapshot = SensorSnapshot(
                ambient_temperature_fahrenheit=self.default_ambient_fahrenheit,
                connected=connected,
            )
            return self._snapshot

    def dispatch(self, event: SensorEvent) -> SensorSnapshot:
        if isinstance(event, Connected):
            logger.info("Sensor link connected; starting new session")
            return self.reset(connected=True)
        if isinstance(event, Disconnected):
            logger.info("Sensor link disconnected; clearing readings")
            return self.reset(connected=False)
        if isinstance(event, DataLine):
            return self.ingest_line(event.text)
        raise TypeError(f"Unsupported sensor event: {event!r}")

    def _transition(
        self,
        current: SensorSnapshot,
        reading: ParsedReading,
        observed_at: datetime,
    ) -> SensorSnapshot:
        if isinstance(reading, ResistanceOhms):
            return replace(
                current,
                date_observed=observed_at,
                raw_resistance_ohms=reading.value,
                resistance_sentinel=Sentinel.none,
                moisture_percent=self._moisture(
                    reading.value, current.effective_temperature_fahrenheit
                ),
            )

        if isinstance(reading, ResistanceSaturated):
            logger.info("Resistance saturated (open circuit)")
            return replace(
                current,
                date_observed=observed_at,
                raw_resistance_ohms=None,
                resistance_sentinel=Sentinel.saturated,
                moisture_percent=None,
            )

        if isinstance(reading, TemperatureFahrenheit):
            return replace(
                current,
                date_observed=observed_at,
                temperature_fahrenheit=reading.value,
                temperature_sentinel=Sentinel.none,
            )

        if isinstance(reading, TemperatureDisconnected):
            logger.info("Temperature probe reported disconnected")
            return replace(
                current,
                date_observed=observed_at,
                temperature_fahrenheit=None,
                temperature_sentinel=Sentinel.disconnected,
            )

        raise TypeError(f"Unsupported reading: {reading!r}")

    def _moisture(
        self, resistance_ohms: float, temperature_fahrenheit: Optional[float]
    ) -> Optional[float]:
        if temperature_fahrenheit is None:
            return None
        try:
            moisture = moisture_from_resistance(
                resistance_ohms, temperature_fahrenheit, self.constants
            )
        except CalibrationError as exc:
            logger.warning(
                "Moisture unavailable",
                extra={
                    "resistance_ohms": resistance_ohms,
                    "temperature_f": temperature_fahrenheit,
                    "reason": str(exc),
                },
            )
            return None
        logger.debug(
            "Moisture computed",
            extra={
                "resistance_ohms": resistance_ohms,
                "temperature_f": temperature_fahrenheit,
                "moisture_percent": moisture,
            },
        )
        return moisture
