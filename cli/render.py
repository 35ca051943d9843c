from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_snapshot(payload: Dict[str, Any]) -> None:
    display = payload.get("display") or {}
    echo_heading("Sensor Readings")
    echo_key_values(
        [
            ("connected", "yes" if payload.get("connected") else "no"),
            ("date", display.get("date")),
            ("resistance", display.get("resistance")),
            ("temperature", display.get("temperature")),
            ("temperature_celsius", display.get("temperature_celsius")),
            ("moisture", display.get("moisture")),
        ]
    )
    ambient = payload.get("ambient_temperature_fahrenheit")
    if ambient is not None:
        typer.echo(f"ambient_fallback: {ambient:0.1f}℉")


def render_record(payload: Dict[str, Any]) -> None:
    echo_heading("Observation")
    pairs = [
        ("record_id", payload.get("record_id")),
        ("site_name", payload.get("site_name")),
        ("observed_at", payload.get("observed_at")),
        ("moisture", payload.get("moisture")),
    ]
    coordinates = payload.get("coordinates")
    if coordinates:
        pairs.append(
            ("coordinates", f"{coordinates.get('latitude')}, {coordinates.get('longitude')}")
        )
    if payload.get("photo_key"):
        pairs.append(("photo", payload.get("photo_key")))
    echo_key_values(pairs)


def render_records(records: List[Dict[str, Any]]) -> None:
    echo_heading("Observations")
    if not records:
        typer.echo("No observations recorded.")
        return
    for record in records:
        typer.echo(
            f"  - {record.get('site_name')} | {record.get('observed_at')} | {record.get('moisture')}"
        )
