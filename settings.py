from __future__ import annotations

import math
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_LOG_PATH_ENV = "OBSERVATION_LOG_PATH"
_PHOTO_ROOT_ENV = "PHOTO_ROOT_PATH"
_AMBIENT_TEMPERATURE_ENV = "AMBIENT_TEMPERATURE_F"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    observation_log_path: Optional[str]
    photo_root_path: Optional[str]
    ambient_temperature_fahrenheit: Optional[float]
    log_level: str


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_ambient_temperature() -> Optional[float]:
    value = os.getenv(_AMBIENT_TEMPERATURE_ENV)
    if value is None:
        return None
    candidate = value.strip()
    if not candidate:
        return None
    try:
        parsed = float(candidate)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        observation_log_path=_read_optional_env(_LOG_PATH_ENV, "./tmp/observations.json"),
        photo_root_path=_read_optional_env(_PHOTO_ROOT_ENV, "./tmp/photos"),
        ambient_temperature_fahrenheit=_read_ambient_temperature(),
        log_level=_read_log_level("INFO"),
    )
