from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the soil sense service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def send_event(self, kind: str, line: Optional[str] = None) -> Dict[str, Any]:
        body: Dict[str, Any] = {"kind": kind}
        if line is not None:
            body["line"] = line
        return self._request("POST", "/sensor/events", json=body)

    def send_lines(self, lines: Iterable[str]) -> Dict[str, Any]:
        return self._request("POST", "/sensor/lines", json={"lines": list(lines)})

    def get_snapshot(self) -> Dict[str, Any]:
        return self._request("GET", "/sensor/snapshot")

    def set_ambient_temperature(self, fahrenheit: Optional[float]) -> Dict[str, Any]:
        return self._request(
            "PUT", "/sensor/ambient-temperature", json={"fahrenheit": fahrenheit}
        )

    def save_observation(
        self,
        site_name: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        photo: Optional[Path] = None,
    ) -> Dict[str, Any]:
        data: Dict[str, Any] = {"site_name": site_name}
        if latitude is not None:
            data["latitude"] = str(latitude)
        if longitude is not None:
            data["longitude"] = str(longitude)

        if photo is None:
            return self._request("POST", "/observations", data=data)
        if not photo.is_file():
            raise typer.BadParameter(f"Photo {photo} is not a file.")
        with photo.open("rb") as handle:
            return self._request(
                "POST",
                "/observations",
                data=data,
                files={"photo": (photo.name, handle, "application/octet-stream")},
            )

    def list_observations(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/observations")

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
