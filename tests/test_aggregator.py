"""Unit tests for the reading aggregator state machine."""

from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest

from models.readings import (
    Connected,
    DataLine,
    Disconnected,
    MalformedReading,
    ResistanceOhms,
    Sentinel,
    Unrecognized,
)
from services.aggregator import ReadingAggregator
from services.calibration import moisture_from_resistance


def _observed(minute: int = 0) -> datetime:
    """Helper to build deterministic observation times."""

    return datetime(2024, 3, 13, 14, minute, tzinfo=timezone.utc)


def test_initial_snapshot_is_empty() -> None:
    snapshot = ReadingAggregator().snapshot()

    assert snapshot.date_observed is None
    assert snapshot.raw_resistance_ohms is None
    assert snapshot.temperature_fahrenheit is None
    assert snapshot.moisture_percent is None
    assert snapshot.resistance_sentinel is Sentinel.none
    assert snapshot.temperature_sentinel is Sentinel.none
    assert snapshot.connected is False


def test_temperature_then_resistance_computes_moisture() -> None:
    aggregator = ReadingAggregator()

    aggregator.ingest_line("T: 68.0", observed_at=_observed(0))
    snapshot = aggregator.ingest_line("R: 500", observed_at=_observed(1))

    assert snapshot.temperature_fahrenheit == 68.0
    assert snapshot.raw_resistance_ohms == 500.0
    assert snapshot.moisture_percent == pytest.approx(228.307, abs=1e-9)
    assert snapshot.date_observed == _observed(1)


def test_saturated_resistance_clears_moisture() -> None:
    aggregator = ReadingAggregator()
    aggregator.ingest_line("T: 68.0")
    aggregator.ingest_line("R: 500")

    snapshot = aggregator.ingest_line("R: INF")

    assert snapshot.resistance_sentinel is Sentinel.saturated
    assert snapshot.raw_resistance_ohms is None
    assert snapshot.moisture_percent is None
    assert snapshot.temperature_fahrenheit == 68.0


def test_valid_resistance_after_saturation_recovers() -> None:
    aggregator = ReadingAggregator()
    aggregator.ingest_line("T: 70")
    aggregator.ingest_line("R: INF")

    snapshot = aggregator.ingest_line("R: 1000")

    assert snapshot.resistance_sentinel is Sentinel.none
    assert snapshot.moisture_percent == pytest.approx(99.173, abs=1e-9)


def test_resistance_without_temperature_has_no_moisture() -> None:
    aggregator = ReadingAggregator()

    snapshot = aggregator.ingest_line("R: 500")

    assert snapshot.raw_resistance_ohms == 500.0
    assert snapshot.moisture_percent is None


def test_later_temperature_does_not_recompute_moisture() -> None:
    aggregator = ReadingAggregator()
    aggregator.ingest_line("T: 68.0")
    before = aggregator.ingest_line("R: 500").moisture_percent

    after = aggregator.ingest_line("T: 90.0")

    assert after.moisture_percent == before
    assert after.temperature_fahrenheit == 90.0


def test_next_resistance_uses_latest_temperature() -> None:
    aggregator = ReadingAggregator()
    aggregator.ingest_line("T: 68.0")
    aggregator.ingest_line("R: 500")
    aggregator.ingest_line("T: 50.0")

    snapshot = aggregator.ingest_line("R: 500")

    assert snapshot.moisture_percent == moisture_from_resistance(500.0, 50.0)


def test_disconnected_temperature_falls_back_to_ambient() -> None:
    aggregator = ReadingAggregator()
    aggregator.set_ambient_temperature(70.0)
    aggregator.ingest_line("T: 68.0")

    disconnected = aggregator.ingest_line("T: -196.60")
    snapshot = aggregator.ingest_line("R: 1000")

    assert disconnected.temperature_sentinel is Sentinel.disconnected
    assert disconnected.temperature_fahrenheit is None
    assert snapshot.moisture_percent == pytest.approx(99.173, abs=1e-9)


def test_disconnected_temperature_without_ambient_gives_no_moisture() -> None:
    aggregator = ReadingAggregator()
    aggregator.ingest_line("T: 185.00")

    snapshot = aggregator.ingest_line("R: 1000")

    assert snapshot.moisture_percent is None


def test_sensor_temperature_wins_over_ambient() -> None:
    aggregator = ReadingAggregator(ambient_temperature_fahrenheit=30.0)
    aggregator.ingest_line("T: 70.0")

    snapshot = aggregator.ingest_line("R: 1000")

    assert snapshot.moisture_percent == pytest.approx(99.173, abs=1e-9)


@pytest.mark.parametrize("reading", [Unrecognized(), MalformedReading(tag="R: ", raw="x")])
def test_ignored_readings_leave_snapshot_untouched(reading) -> None:
    aggregator = ReadingAggregator()
    aggregator.ingest_line("T: 68.0", observed_at=_observed(0))
    before = aggregator.snapshot()

    after = aggregator.apply(reading, observed_at=_observed(5))

    assert after is before


def test_noise_lines_do_not_change_state() -> None:
    aggregator = ReadingAggregator()
    before = aggregator.snapshot()

    for line in ["", "Scanning...", "R: garbage", "T: ??"]:
        aggregator.ingest_line(line)

    assert aggregator.snapshot() == before


def test_divergent_calibration_is_absorbed() -> None:
    aggregator = ReadingAggregator()
    aggregator.ingest_line("T: 70.0")

    snapshot = aggregator.ingest_line("R: 200000")

    assert snapshot.raw_resistance_ohms == 200000.0
    assert snapshot.moisture_percent is None


def test_reset_clears_every_reading() -> None:
    aggregator = ReadingAggregator()
    aggregator.ingest_line("T: 68.0")
    aggregator.ingest_line("R: 500")
    aggregator.set_ambient_temperature(60.0)

    snapshot = aggregator.reset()

    assert snapshot.date_observed is None
    assert snapshot.raw_resistance_ohms is None
    assert snapshot.temperature_fahrenheit is None
    assert snapshot.ambient_temperature_fahrenheit is None
    assert snapshot.moisture_percent is None
    assert snapshot.resistance_sentinel is Sentinel.none
    assert snapshot.temperature_sentinel is Sentinel.none

    fresh = aggregator.ingest_line("R: 500")
    assert fresh.moisture_percent is None


def test_reset_restores_configured_ambient_default() -> None:
    aggregator = ReadingAggregator(ambient_temperature_fahrenheit=70.0)
    aggregator.set_ambient_temperature(40.0)

    snapshot = aggregator.reset()

    assert snapshot.ambient_temperature_fahrenheit == 70.0


def test_dispatch_handles_link_events() -> None:
    aggregator = ReadingAggregator()

    connected = aggregator.dispatch(Connected())
    aggregator.dispatch(DataLine(text="T: 68.0"))
    with_data = aggregator.dispatch(DataLine(text="R: 500"))
    disconnected = aggregator.dispatch(Disconnected())

    assert connected.connected is True
    assert with_data.connected is True
    assert with_data.moisture_percent is not None
    assert disconnected.connected is False
    assert disconnected.moisture_percent is None
    assert disconnected.raw_resistance_ohms is None


def test_apply_rejects_unknown_reading_types() -> None:
    with pytest.raises(TypeError):
        ReadingAggregator().apply(object())  # type: ignore[arg-type]


def test_concurrent_reads_never_observe_torn_snapshot() -> None:
    aggregator = ReadingAggregator()
    aggregator.ingest_line("T: 68.0")
    stop = threading.Event()
    mismatches: list[tuple[float | None, float | None]] = []

    def writer() -> None:
        resistances = ("R: 500", "R: 1500", "R: 3000")
        index = 0
        while not stop.is_set():
            aggregator.apply(ResistanceOhms(value=float(resistances[index % 3][3:])))
            index += 1

    thread = threading.Thread(target=writer)
    thread.start()
    try:
        for _ in range(2000):
            snapshot = aggregator.snapshot()
            if snapshot.raw_resistance_ohms is None:
                continue
            expected = moisture_from_resistance(snapshot.raw_resistance_ohms, 68.0)
            if snapshot.moisture_percent != expected:
                mismatches.append((snapshot.raw_resistance_ohms, snapshot.moisture_percent))
    finally:
        stop.set()
        thread.join(timeout=5)

    assert mismatches == []


@pytest.mark.parametrize("line", ["R: 1e-260", "R: 1e-300", "R: 5e-324"])
def test_out_of_range_resistance_is_absorbed(line: str) -> None:
    aggregator = ReadingAggregator()
    aggregator.ingest_line("T: 68.0")

    snapshot = aggregator.ingest_line(line)

    assert snapshot.raw_resistance_ohms == float(line[3:])
    assert snapshot.moisture_percent is None

    recovered = aggregator.ingest_line("R: 500")
    assert recovered.moisture_percent == pytest.approx(228.307, abs=1e-9)


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_ambient_temperature_is_ignored(value: float) -> None:
    aggregator = ReadingAggregator()
    aggregator.set_ambient_temperature(70.0)

    snapshot = aggregator.set_ambient_temperature(value)

    assert snapshot.ambient_temperature_fahrenheit == 70.0
    assert aggregator.ingest_line("R: 1000").moisture_percent == pytest.approx(99.173, abs=1e-9)


def test_non_finite_ambient_temperature_does_not_enable_moisture() -> None:
    aggregator = ReadingAggregator()
    aggregator.set_ambient_temperature(float("nan"))

    snapshot = aggregator.ingest_line("R: 500")

    assert snapshot.ambient_temperature_fahrenheit is None
    assert snapshot.moisture_percent is None
