from __future__ import annotations

import pytest

from services.calibration import (
    DEFAULT_CONSTANTS,
    CalibrationConstants,
    CalibrationError,
    fahrenheit_to_celsius,
    moisture_from_resistance,
    normalize_resistance,
)


def test_regression_fixture_at_1000_ohm_70_f() -> None:
    assert moisture_from_resistance(1000.0, 70.0) == pytest.approx(99.173, abs=1e-9)


@pytest.mark.parametrize(
    ("resistance", "temperature", "expected"),
    [
        (500.0, 68.0, 228.307),
        (2000.0, 50.0, 43.521),
        (10000.0, 70.0, 5.845),
    ],
)
def test_known_calibration_points(resistance: float, temperature: float, expected: float) -> None:
    assert moisture_from_resistance(resistance, temperature, DEFAULT_CONSTANTS) == pytest.approx(
        expected, abs=1e-9
    )


def test_normalized_resistance_is_compensated_to_reference() -> None:
    assert normalize_resistance(1000.0, 70.0) == pytest.approx(1006.96688, rel=1e-6)


def test_geometry_transforms_are_inverse() -> None:
    constants = CalibrationConstants()

    assert constants.resistance(constants.resistivity(1234.0)) == pytest.approx(1234.0)


def test_fahrenheit_to_celsius() -> None:
    assert fahrenheit_to_celsius(68.0) == pytest.approx(20.0)
    assert fahrenheit_to_celsius(32.0) == 0.0


def test_same_inputs_give_same_moisture() -> None:
    first = moisture_from_resistance(750.0, 61.3)
    second = moisture_from_resistance(750.0, 61.3)

    assert first == second


def test_result_is_not_clamped() -> None:
    assert moisture_from_resistance(100.0, 68.0) > 100.0


def test_result_is_rounded_to_three_decimals() -> None:
    value = moisture_from_resistance(1234.0, 55.0)

    assert value == round(value, 3)


def test_divergent_compensation_raises() -> None:
    with pytest.raises(CalibrationError):
        moisture_from_resistance(200000.0, 70.0)


def test_constants_can_be_tuned_independently() -> None:
    wetter = CalibrationConstants(coefficient=400000)

    assert moisture_from_resistance(1000.0, 70.0, wetter) > moisture_from_resistance(1000.0, 70.0)


@pytest.mark.parametrize("resistance", [1e-255, 1e-260, 1e-300, 5e-324])
def test_vanishing_resistance_is_out_of_range(resistance: float) -> None:
    with pytest.raises(CalibrationError):
        moisture_from_resistance(resistance, 68.0)


@pytest.mark.parametrize("temperature", [1e300, float("nan"), float("inf")])
def test_unrepresentable_temperature_raises(temperature: float) -> None:
    with pytest.raises(CalibrationError):
        moisture_from_resistance(1000.0, temperature)
