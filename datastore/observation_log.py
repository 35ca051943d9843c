from __future__ import annotations
import json
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import List, Optional

from app.schemas import SoilObservationRecord
from settings import get_settings


class ObservationLog:
    """Append-only, ordered log of saved observations."""

    def __init__(self, persistence_path: Optional[Path] = None) -> None:
        self._records: List[SoilObservationRecord] = []
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def append(self, record: SoilObservationRecord) -> None:
        with self._lock:
            if any(existing.record_id == record.record_id for existing in self._records):
                raise ValueError(f"Record {record.record_id!r} already exists.")
            records = [*self._records, record]
            self._persist(records)
            self._records = records

    def get(self, record_id: str) -> Optional[SoilObservationRecord]:
        with self._lock:
            for record in self._records:
                if record.record_id == record_id:
                    return record
            return None

    def scan(self) -> list[SoilObservationRecord]:
        """Return all records in the order they were saved."""

        with self._lock:
            return list(self._records)

    def _persist(self, records: List[SoilObservationRecord]) -> None:
        if not self.persistence_path:
            return
        payload = [record.model_dump(mode="json") for record in records]
        self.persistence_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "[]"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = []

        for payload in data:
            self._records.append(SoilObservationRecord.model_validate(payload))


@lru_cache
def build_default_log(path: Optional[str] = None) -> ObservationLog:
    settings = get_settings()
    log_path = settings.observation_log_path if path is None else path
    persistence = Path(log_path) if log_path else None
    return ObservationLog(persistence_path=persistence)
