from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_record, render_records, render_snapshot
from logging_config import configure_logging
from services.calibration import CalibrationError, moisture_from_resistance


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the soil sense service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging()
    if ctx.invoked_subcommand == "moisture":
        return
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("replay")
def replay_command(
    ctx: typer.Context,
    file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Captured serial log."
    ),
    session: bool = typer.Option(
        False,
        "--session/--no-session",
        help="Send a connect event first so the replay starts from a clean snapshot.",
    ),
) -> None:
    """Feed a captured sensor log to the service, line by line."""
    state = _get_state(ctx)
    lines = [line for line in file.read_text(encoding="utf-8").splitlines() if line.strip()]
    if session:
        state.client.send_event("connected")
    typer.echo(f"Replaying {len(lines)} lines to {state.config.base_url} ...")
    payload = state.client.send_lines(lines)
    typer.echo()
    render_snapshot(payload)


@app.command("snapshot")
def snapshot_command(ctx: typer.Context) -> None:
    """Show the current readings."""
    state = _get_state(ctx)
    render_snapshot(state.client.get_snapshot())


@app.command("ambient")
def ambient_command(
    ctx: typer.Context,
    fahrenheit: Optional[float] = typer.Argument(
        None, help="Ambient temperature in Fahrenheit (e.g. from a weather report)."
    ),
    clear: bool = typer.Option(False, "--clear", help="Remove the ambient fallback."),
) -> None:
    """Set the temperature used when the probe has not reported one."""
    if fahrenheit is None and not clear:
        raise typer.BadParameter("Provide a temperature or --clear.")
    if fahrenheit is not None and not math.isfinite(fahrenheit):
        raise typer.BadParameter("Temperature must be a finite number.")
    state = _get_state(ctx)
    payload = state.client.set_ambient_temperature(None if clear else fahrenheit)
    render_snapshot(payload)


@app.command("save")
def save_command(
    ctx: typer.Context,
    site_name: str = typer.Argument(..., help="Name of the sampled site."),
    latitude: Optional[float] = typer.Option(None, "--lat", help="Latitude in degrees."),
    longitude: Optional[float] = typer.Option(None, "--lon", help="Longitude in degrees."),
    photo: Optional[Path] = typer.Option(
        None, "--photo", exists=True, dir_okay=False, readable=True, help="Site photo."
    ),
) -> None:
    """Save the current readings as an observation."""
    state = _get_state(ctx)
    record = state.client.save_observation(
        site_name, latitude=latitude, longitude=longitude, photo=photo
    )
    typer.secho("Observation saved.", fg=typer.colors.GREEN)
    render_record(record)


@app.command("records")
def records_command(ctx: typer.Context) -> None:
    """List saved observations."""
    state = _get_state(ctx)
    render_records(state.client.list_observations())


@app.command("moisture")
def moisture_command(
    resistance: float = typer.Argument(..., help="Measured resistance in ohms."),
    temperature: float = typer.Argument(..., help="Soil temperature in Fahrenheit."),
) -> None:
    """Run the calibration model locally without contacting the service."""
    if resistance <= 0:
        raise typer.BadParameter("Resistance must be positive.")
    try:
        moisture = moisture_from_resistance(resistance, temperature)
    except CalibrationError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"{moisture:0.1f}% ({moisture})")
