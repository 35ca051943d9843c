"""Tokenizer for the probe's text stream."""

from __future__ import annotations

import logging
import math

from models.readings import (
    MalformedReading,
    ParsedReading,
    ResistanceOhms,
    ResistanceSaturated,
    TemperatureDisconnected,
    TemperatureFahrenheit,
    Unrecognized,
)

logger = logging.getLogger(__name__)

RESISTANCE_TAG = "R: "
TEMPERATURE_TAG = "T: "
_TAG_LENGTH = 3

# Firmware error codes, compared as opaque values.
SATURATED_RESISTANCE = "INF"
DISCONNECTED_TEMPERATURES = frozenset({"-196.60", "185.00"})


def parse_line(line: str) -> ParsedReading:
    """Classify one line received over the sensor link.

    Never raises: unknown lines come back as ``Unrecognized`` and unusable
    values behind a known tag as ``MalformedReading``.
    """
    candidate = line.strip("\r\n")
    if candidate.startswith(RESISTANCE_TAG):
        return _parse_resistance(candidate[_TAG_LENGTH:].strip())
    if candidate.startswith(TEMPERATURE_TAG):
        return _parse_temperature(candidate[_TAG_LENGTH:].strip())
    return Unrecognized()


def _parse_resistance(raw: str) -> ParsedReading:
    if raw.upper() == SATURATED_RESISTANCE:
        return ResistanceSaturated()

    value = _to_float(raw)
    if value is None or value <= 0:
        logger.debug(
            "Discarding resistance value",
            extra={"reading": raw, "reason": "not a positive finite number"},
        )
        return MalformedReading(tag=RESISTANCE_TAG, raw=raw)
    return ResistanceOhms(value=value)


def _parse_temperature(raw: str) -> ParsedReading:
    if raw in DISCONNECTED_TEMPERATURES:
        return TemperatureDisconnected()

    value = _to_float(raw)
    if value is None:
        logger.debug(
            "Discarding temperature value",
            extra={"reading": raw, "reason": "not a finite number"},
        )
        return MalformedReading(tag=TEMPERATURE_TAG, raw=raw)
    return TemperatureFahrenheit(value=value)


def _to_float(raw: str) -> float | None:
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None
