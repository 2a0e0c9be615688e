# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Persistence for JourneyMap.

Everything is kept in four whole-value slots of a key-value store:
locations, photos, caption overrides and sync metadata. There are no
partial updates and no transactions.
"""

import copy
import json
import logging
import os
import re
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import StoreConfig
from .models import Location, Photo, SyncMeta

logger = logging.getLogger(__name__)

LOCATIONS_KEY = "journey:locations"
PHOTOS_KEY = "journey:photos"
CAPTIONS_KEY = "journey:captions"  # User-editable captions
META_KEY = "journey:meta"


class KeyValueStore(ABC):
    """Whole-value get/set storage."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None if the key is unset."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Overwrite the whole value stored under key."""


class MemoryKeyValueStore(KeyValueStore):
    """In-process store. Values are copied in and out."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)


class StoreError(Exception):
    """A stored value exists but cannot be read."""


class JsonFileKeyValueStore(KeyValueStore):
    """
    Store backed by a directory of JSON files, one file per key.

    Each key is written on its own, so a sync rewriting photos never touches
    the caption overrides. Files are re-read on every get so separate
    processes (web server and cron sync) see each other's writes.
    """

    def __init__(self, directory: str):
        self.directory = Path(directory)
        self._lock = threading.RLock()

    def path_for(self, key: str) -> Path:
        """File holding the value of key."""
        return self.directory / (re.sub(r'[^A-Za-z0-9_.-]', '-', key) + '.json')

    def get(self, key: str) -> Optional[Any]:
        path = self.path_for(key)
        with self._lock:
            if not path.exists():
                return None
            try:
                with open(path, 'r') as f:
                    return json.load(f)
            except (OSError, ValueError) as e:
                # Left in place for inspection; never silently replaced
                logger.error(f"Failed to load {path}: {e}")
                raise StoreError(f"Cannot read stored value {key!r} from {path}: {e}") from e

    def set(self, key: str, value: Any) -> None:
        """Save to disk atomically.

        Writes to a unique temp file in the same directory, then renames over
        the key's file, so readers never see a partial write.
        """
        path = self.path_for(key)
        with self._lock:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(dir=self.directory, prefix=path.name + '.', suffix='.tmp')
            try:
                with os.fdopen(fd, 'w') as f:
                    json.dump(value, f, indent=2)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(temp_path, path)
            except BaseException:
                if os.path.exists(temp_path):
                    os.unlink(temp_path)
                raise


def create_store(config: StoreConfig) -> KeyValueStore:
    """Build the key-value backend named in the config."""
    if config.backend == "memory":
        logger.info("Using in-memory store (data is lost on restart)")
        return MemoryKeyValueStore()
    if config.backend == "json":
        logger.info(f"Using JSON file store: {config.path}")
        return JsonFileKeyValueStore(os.path.expanduser(config.path))
    raise ValueError(f"Unknown store backend: {config.backend}")


class DomainStore:
    """Typed access to the four JourneyMap records."""

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    def store_locations(self, locations: List[Location]) -> None:
        """Store synced location data."""
        self.kv.set(LOCATIONS_KEY, [loc.to_dict() for loc in locations])

    def get_locations(self) -> List[Location]:
        """Get all stored locations."""
        return [Location.from_dict(d) for d in self.kv.get(LOCATIONS_KEY) or []]

    def store_photos(self, photos: List[Photo]) -> None:
        """Store photo metadata (without URLs)."""
        self.kv.set(PHOTOS_KEY, [photo.to_dict() for photo in photos])

    def get_photos(self) -> List[Photo]:
        """Get all stored photos."""
        return [Photo.from_dict(d) for d in self.kv.get(PHOTOS_KEY) or []]

    def set_caption(self, photo_id: str, caption: str) -> None:
        """
        Store or update one user caption.

        Read-modify-write of the whole map: concurrent edits can overwrite
        each other (last write wins).
        """
        captions = self.get_captions()
        captions[photo_id] = caption
        self.kv.set(CAPTIONS_KEY, captions)

    def get_captions(self) -> Dict[str, str]:
        """Get all user captions."""
        return dict(self.kv.get(CAPTIONS_KEY) or {})

    def store_meta(self, meta: SyncMeta) -> None:
        """Store sync metadata."""
        self.kv.set(META_KEY, meta.to_dict())

    def get_meta(self) -> Optional[SyncMeta]:
        """Get sync metadata, or None before the first sync."""
        data = self.kv.get(META_KEY)
        return SyncMeta.from_dict(data) if data else None

    def get_location(self, location_id: str) -> Optional[Location]:
        for location in self.get_locations():
            if location.id == location_id:
                return location
        return None

    def get_photos_for_location(self, location_id: str) -> List[Photo]:
        """Get photos for specific location, in the location's order."""
        location = self.get_location(location_id)
        if not location:
            return []

        photos_by_id = {photo.id: photo for photo in self.get_photos()}
        return [photos_by_id[pid] for pid in location.photo_ids if pid in photos_by_id]
