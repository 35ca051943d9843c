from __future__ import annotations
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

from settings import get_settings


class PhotoStore:
    """Observation photos keyed by ``<record_id>/<filename>``.

    Photos are kept in memory and, when ``root_path`` is set, written through
    to disk so they survive a restart.
    """

    def __init__(self, root_path: Optional[Path] = None) -> None:
        self.root_path = root_path
        self._photos: Dict[str, bytes] = {}
        self._lock = Lock()
        if root_path:
            root_path.mkdir(parents=True, exist_ok=True)

    def put_photo(self, key: str, data: bytes) -> None:
        with self._lock:
            path = self._path_for(key)
            if path is not None:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(data)
            self._photos[key] = data

    def get_photo(self, key: str) -> bytes:
        with self._lock:
            data = self._photos.get(key)
            if data is not None:
                return data
            path = self._path_for(key)
            if path is None or not path.is_file():
                raise KeyError(f"Photo {key!r} not found.")
            data = path.read_bytes()
            self._photos[key] = data
            return data

    def delete_photo(self, key: str) -> None:
        with self._lock:
            self._photos.pop(key, None)
            path = self._path_for(key)
            if path is not None:
                path.unlink(missing_ok=True)

    def _path_for(self, key: str) -> Optional[Path]:
        if not self.root_path:
            return None
        return self.root_path / key


@lru_cache
def build_default_photo_store(root_path: Optional[str] = None) -> PhotoStore:
    settings = get_settings()
    photo_root = settings.photo_root_path if root_path is None else root_path
    path = Path(photo_root) if photo_root else None
    return PhotoStore(root_path=path)
