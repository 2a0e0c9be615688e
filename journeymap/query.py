# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Read-side assembly of map data.

Joins stored locations, photos and caption overrides with display URLs
resolved at request time. Photos whose URL cannot be resolved are left out,
as are locations left without any photo.
"""

import logging
from typing import Any, Dict, List, Optional

from .photo_source import GooglePhotosSource
from .store import DomainStore

logger = logging.getLogger(__name__)


class QueryService:
    """Builds the /api/photos response."""

    def __init__(self, store: DomainStore, source: GooglePhotosSource):
        self.store = store
        self.source = source

    def get_photos(
        self,
        year: Optional[int] = None,
        location_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Get locations with displayable photos.

        Args:
            year: Keep locations from this year or earlier (timeline view).
            location_id: Keep only this location.

        Returns:
            Dict with "locations", "years" and "lastSynced". Years and
            lastSynced are not affected by the filters.
        """
        locations = self.store.get_locations()
        photos_by_id = {photo.id: photo for photo in self.store.get_photos()}
        captions = self.store.get_captions()
        meta = self.store.get_meta()

        if year is not None:
            locations = [loc for loc in locations if loc.year <= year]
        if location_id is not None:
            locations = [loc for loc in locations if loc.id == location_id]

        photo_ids = [pid for loc in locations for pid in loc.photo_ids]
        url_map = self.source.resolve_urls(photo_ids)

        response_locations: List[Dict[str, Any]] = []
        for loc in locations:
            loc_photos = []
            for pid in loc.photo_ids:
                stored = photos_by_id.get(pid)
                url = url_map.get(pid)
                if stored is None or not url:
                    continue
                loc_photos.append({
                    "id": pid,
                    "url": url,
                    "caption": captions[pid] if pid in captions else stored.caption,
                    "takenAt": stored.taken_at,
                })

            # Only include locations with loadable photos
            if not loc_photos:
                continue

            response_locations.append({
                "id": loc.id,
                "name": loc.name,
                "coords": [loc.lat, loc.lng],
                "type": loc.type,
                "year": loc.year,
                "photos": loc_photos,
            })

        dropped = len(locations) - len(response_locations)
        if dropped:
            logger.debug(f"{dropped} locations had no displayable photos")

        return {
            "locations": response_locations,
            "years": meta.years if meta else [],
            "lastSynced": meta.last_synced if meta else "never",
        }

    def get_location_photos(self, location_id: str) -> Optional[List[Dict[str, Any]]]:
        """
        Stored photos of one location with caption overrides applied.

        Returns None if the location does not exist. No URLs are resolved.
        """
        if self.store.get_location(location_id) is None:
            return None

        captions = self.store.get_captions()
        result = []
        for photo in self.store.get_photos_for_location(location_id):
            data = photo.to_dict()
            if photo.id in captions:
                data["caption"] = captions[photo.id]
            result.append(data)
        return result
