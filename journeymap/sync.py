# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Album sync for JourneyMap.

Rebuilds the stored photos, locations and metadata from the album on every
run. User caption overrides are folded back in so they survive re-syncs.
"""

import logging
from typing import Callable, Dict, List, Optional

from .captions import classify_contributors, location_id, parse_caption
from .models import Location, Photo, SyncMeta, SyncResult, utc_now_iso, year_of
from .photo_source import GooglePhotosSource, MediaItem
from .store import DomainStore

logger = logging.getLogger(__name__)


class SyncAggregator:
    """
    Turns album items into grouped location records.

    Nothing is written until every item has been processed; the three
    writes that follow (photos, locations, meta) are not transactional.
    """

    def __init__(
        self,
        store: DomainStore,
        source: GooglePhotosSource,
        clock: Optional[Callable[[], str]] = None
    ):
        """
        Initialize the aggregator.

        Args:
            store: Domain store to read overrides from and write results to.
            source: Photo source to list album items.
            clock: Returns the current time as an ISO string (injectable for tests).
        """
        self.store = store
        self.source = source
        self._clock = clock or utc_now_iso

    def run_sync(self, album_id: str) -> SyncResult:
        """
        Fetch the album and replace stored photos, locations and metadata.

        Args:
            album_id: Google Photos album ID.

        Returns:
            SyncResult with counts and the sync timestamp.

        Raises:
            PhotoSourceError: If the album cannot be listed. Nothing is written.
        """
        logger.info(f"Starting sync from Google Photos album: {album_id}")

        media_items = self.source.fetch_album_items(album_id)
        logger.info(f"Fetched {len(media_items)} photos")

        # Existing user captions win over freshly parsed ones
        user_captions = self.store.get_captions()

        photos, groups = self._build_photos(media_items, user_captions)
        locations = self._build_locations(groups)

        synced_at = self._clock()
        years = sorted({loc.year for loc in locations})

        self.store.store_photos(photos)
        self.store.store_locations(locations)
        self.store.store_meta(SyncMeta(
            last_synced=synced_at,
            album_id=album_id,
            total_photos=len(photos),
            years=years,
        ))

        unlocated = len(photos) - sum(len(loc.photo_ids) for loc in locations)
        if unlocated:
            logger.info(f"{unlocated} photos have no location tag and are not on the map")
        logger.info(f"Sync complete: {len(photos)} photos, {len(locations)} locations")

        return SyncResult(
            photo_count=len(photos),
            location_count=len(locations),
            synced_at=synced_at,
        )

    def _build_photos(self, media_items: List[MediaItem], user_captions: Dict[str, str]):
        """Create photo records and group them by parsed location label.

        Returns:
            (photos, groups) where groups maps location label to its photos
            in encounter order. Unlabeled photos are in photos only.
        """
        photos: List[Photo] = []
        groups: Dict[str, List[Photo]] = {}

        for item in media_items:
            parsed = parse_caption(item.description)

            if item.id in user_captions:
                caption = user_captions[item.id]
            else:
                caption = parsed.caption or ""

            photo = Photo(
                id=item.id,
                caption=caption,
                taken_at=item.creation_time or self._clock(),
                lat=0.0,  # No geocoding during sync
                lng=0.0,
                contributor=item.contributor,
            )
            photos.append(photo)

            if parsed.location:
                groups.setdefault(parsed.location, []).append(photo)

        return photos, groups

    def _build_locations(self, groups: Dict[str, List[Photo]]) -> List[Location]:
        locations = []
        for name, members in groups.items():
            first = members[0]
            year = year_of(first.taken_at)
            locations.append(Location(
                id=location_id(name, year),
                name=name,
                year=year,
                type=classify_contributors(p.contributor for p in members),
                lat=first.lat,
                lng=first.lng,
                photo_ids=[p.id for p in members],
            ))
        return locations
