"""Temperature-compensated resistance to soil-moisture model."""

from __future__ import annotations

import math
from dataclasses import dataclass


class CalibrationError(ValueError):
    """Raised when the compensation model has no physical solution."""


@dataclass(frozen=True)
class CalibrationConstants:
    """Probe geometry (metres) and thermal/empirical fit parameters."""

    circumference: float = 0.0095
    length: float = 0.049
    exposed_length: float = 0.05
    alpha: float = 0.0012
    beta: float = 0.1562
    coefficient: float = 387258
    exponent: float = -1.196
    reference_celsius: float = 20.0

    def resistivity(self, resistance: float) -> float:
        return resistance * ((self.exposed_length * (self.circumference / 2)) / self.length)

    def resistance(self, resistivity: float) -> float:
        return resistivity / ((self.exposed_length * (self.circumference / 2)) / self.length)


DEFAULT_CONSTANTS = CalibrationConstants()

_DIGITS = 3


def fahrenheit_to_celsius(fahrenheit: float) -> float:
    return (fahrenheit - 32) / 1.8


def normalize_resistance(
    resistance_ohms: float,
    temperature_fahrenheit: float,
    constants: CalibrationConstants = DEFAULT_CONSTANTS,
) -> float:
    """Return the resistance the probe would read at the reference temperature."""
    resistivity = constants.resistivity(resistance_ohms)
    celsius = fahrenheit_to_celsius(temperature_fahrenheit)
    try:
        compensation = math.exp(constants.beta * (celsius - constants.reference_celsius))
    except OverflowError as exc:
        raise CalibrationError(
            f"Temperature {temperature_fahrenheit} F is outside the model range."
        ) from exc
    denominator = 1 - resistivity * constants.alpha * compensation
    if not denominator > 0:
        raise CalibrationError(
            f"Temperature compensation diverges for {resistance_ohms} ohm "
            f"at {temperature_fahrenheit} F."
        )
    ser20 = resistivity / denominator
    return constants.resistance(ser20)


def moisture_from_resistance(
    resistance_ohms: float,
    temperature_fahrenheit: float,
    constants: CalibrationConstants = DEFAULT_CONSTANTS,
) -> float:
    """Soil moisture percentage, rounded to 3 decimals and not clamped.

    Callers must pass a measured, positive resistance and a known
    temperature; the open-circuit sentinel never reaches this function.
    Inputs the power-law fit cannot represent raise ``CalibrationError``.
    """
    normalized = normalize_resistance(resistance_ohms, temperature_fahrenheit, constants)
    if not normalized > 0:
        raise CalibrationError(f"Resistance {resistance_ohms} ohm underflows the model.")
    try:
        moisture = constants.coefficient * math.pow(normalized, constants.exponent)
    except OverflowError as exc:
        raise CalibrationError(
            f"Moisture for {resistance_ohms} ohm is out of range."
        ) from exc
    if not math.isfinite(moisture * 10**_DIGITS):
        raise CalibrationError(f"Moisture for {resistance_ohms} ohm is out of range.")
    return _round_half_away(moisture, _DIGITS)


def _round_half_away(value: float, digits: int) -> float:
    scale = 10**digits
    return math.copysign(math.floor(abs(value) * scale + 0.5), value) / scale
