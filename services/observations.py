"""Session orchestration: link events in, saved observations out."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional
from uuid import uuid4

from app.schemas import Coordinates, SoilObservationRecord
from datastore.observation_log import ObservationLog, build_default_log
from models.readings import SensorEvent, SensorSnapshot
from services.aggregator import ReadingAggregator
from services.formatting import format_moisture
from settings import get_settings
from storage.photo_store import PhotoStore, build_default_photo_store

logger = logging.getLogger(__name__)


class ObservationService:
    """Coordinates the live aggregator with record and photo persistence."""

    def __init__(
        self,
        aggregator: ReadingAggregator,
        log: ObservationLog,
        photos: PhotoStore,
    ) -> None:
        self.aggregator = aggregator
        self.log = log
        self.photos = photos

    def snapshot(self) -> SensorSnapshot:
        return self.aggregator.snapshot()

    def handle_event(self, event: SensorEvent) -> SensorSnapshot:
        return self.aggregator.dispatch(event)

    def ingest_lines(self, lines: Iterable[str]) -> SensorSnapshot:
        snapshot = self.aggregator.snapshot()
        for line in lines:
            snapshot = self.aggregator.ingest_line(line)
        return snapshot

    def set_ambient_temperature(self, fahrenheit: Optional[float]) -> SensorSnapshot:
        return self.aggregator.set_ambient_temperature(fahrenheit)

    def finalize(
        self,
        site_name: str,
        observed_at: Optional[datetime] = None,
        photo: Optional[bytes] = None,
        photo_filename: Optional[str] = None,
        coordinates: Optional[Coordinates] = None,
    ) -> SoilObservationRecord:
        """Save the current snapshot as an observation for ``site_name``."""
        site = site_name.strip()
        if not site:
            raise ValueError("Site name must not be empty.")

        record_id = str(uuid4())
        snapshot = self.aggregator.snapshot()

        photo_key: Optional[str] = None
        if photo:
            photo_key = f"{record_id}/{_photo_filename(photo_filename)}"
            self.photos.put_photo(photo_key, photo)

        record = SoilObservationRecord(
            record_id=record_id,
            site_name=site,
            observed_at=observed_at or datetime.now(timezone.utc),
            moisture=format_moisture(snapshot),
            photo_key=photo_key,
            coordinates=coordinates,
        )
        try:
            self.log.append(record)
        except OSError:
            if photo_key is not None:
                self.photos.delete_photo(photo_key)
            raise
        logger.info(
            "Observation saved",
            extra={"record_id": record_id, "site_name": site, "reading": record.moisture},
        )
        return record

    def list_records(self) -> list[SoilObservationRecord]:
        return self.log.scan()

    def fetch_record(self, record_id: str) -> SoilObservationRecord:
        record = self.log.get(record_id)
        if record is None:
            raise KeyError(f"Observation {record_id!r} not found.")
        return record

    def fetch_photo(self, record_id: str) -> tuple[str, bytes]:
        """Return the stored photo key and bytes for an observation."""
        record = self.fetch_record(record_id)
        if record.photo_key is None:
            raise KeyError(f"Observation {record_id!r} has no photo.")
        return record.photo_key, self.photos.get_photo(record.photo_key)


_DEFAULT_PHOTO_NAME = "photo.jpg"


def _photo_filename(name: Optional[str]) -> str:
    candidate = Path(name).name if name else ""
    if candidate in {"", ".", ".."}:
        return _DEFAULT_PHOTO_NAME
    return candidate


@lru_cache
def build_default_service() -> ObservationService:
    """Factory that wires the service with configured persistence."""
    settings = get_settings()
    aggregator = ReadingAggregator(
        ambient_temperature_fahrenheit=settings.ambient_temperature_fahrenheit
    )
    return ObservationService(
        aggregator=aggregator,
        log=build_default_log(),
        photos=build_default_photo_store(),
    )
