# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Domain records for JourneyMap.

Serialized field names use the camelCase names of the map UI's JSON API,
so stored records and API responses share one shape.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

TYPE_TOGETHER = "together"
TYPE_PRANAV = "pranav"
TYPE_POOJA = "pooja"


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with a Z suffix."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp as returned by Google Photos.

    Accepts a trailing "Z" and fractional seconds of any precision.
    Naive timestamps are treated as UTC.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    # fromisoformat wants exactly six fractional digits on older Pythons
    text = re.sub(r"\.(\d+)", lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def year_of(timestamp: str) -> int:
    """Calendar year (UTC) of an ISO-8601 timestamp."""
    return parse_timestamp(timestamp).astimezone(timezone.utc).year


@dataclass
class Photo:
    """Stable metadata for one album item. Display URLs are never stored."""
    id: str                          # Google Photos mediaItemId
    caption: str = ""                # Caption of record (override or parsed)
    taken_at: str = ""               # ISO timestamp
    lat: float = 0.0
    lng: float = 0.0
    contributor: Optional[str] = None  # Uploader display name

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "caption": self.caption,
            "takenAt": self.taken_at,
            "lat": self.lat,
            "lng": self.lng,
        }
        if self.contributor is not None:
            data["contributor"] = self.contributor
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Photo":
        return cls(
            id=data["id"],
            caption=data.get("caption") or "",
            taken_at=data.get("takenAt", ""),
            lat=data.get("lat", 0.0),
            lng=data.get("lng", 0.0),
            contributor=data.get("contributor"),
        )


@dataclass
class Location:
    """A place and year grouping of photos."""
    id: str                          # slug of name + "-" + year
    name: str
    year: int
    type: str = TYPE_TOGETHER
    lat: float = 0.0
    lng: float = 0.0
    photo_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "lat": self.lat,
            "lng": self.lng,
            "type": self.type,
            "year": self.year,
            "photoIds": list(self.photo_ids),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Location":
        return cls(
            id=data["id"],
            name=data["name"],
            year=int(data["year"]),
            type=data.get("type", TYPE_TOGETHER),
            lat=data.get("lat", 0.0),
            lng=data.get("lng", 0.0),
            photo_ids=list(data.get("photoIds", [])),
        )


@dataclass
class SyncMeta:
    """Bookkeeping written at the end of every sync."""
    last_synced: str
    album_id: str
    total_photos: int = 0
    years: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "lastSynced": self.last_synced,
            "albumId": self.album_id,
            "totalPhotos": self.total_photos,
            "years": list(self.years),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SyncMeta":
        return cls(
            last_synced=data.get("lastSynced", ""),
            album_id=data.get("albumId", ""),
            total_photos=data.get("totalPhotos", 0),
            years=[int(y) for y in data.get("years", [])],
        )


@dataclass
class SyncResult:
    """Summary returned by a sync run."""
    photo_count: int
    location_count: int
    synced_at: str

    def to_dict(self) -> dict:
        return {
            "photos": self.photo_count,
            "locations": self.location_count,
            "syncedAt": self.synced_at,
        }
