# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Google Photos Library API client.
Lists the items of a shared album and resolves display URLs for them.

Display URLs (baseUrl) expire after about an hour, so they are resolved on
every read and never stored. Access tokens are exchanged from the long-lived
refresh token before each outbound call.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

import requests

from .config import GoogleConfig, SyncConfig

logger = logging.getLogger(__name__)


class PhotoSourceError(Exception):
    """The photo source returned an error or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PhotoSourceAuthError(PhotoSourceError):
    """An access token could not be obtained from the refresh token."""


@dataclass
class MediaItem:
    """Represents a photo or video in a Google Photos album."""
    id: str                          # Stable mediaItemId
    base_url: str                    # Short-lived URL (without size params)
    mime_type: str = ""
    description: Optional[str] = None
    creation_time: Optional[str] = None  # ISO timestamp from mediaMetadata
    contributor: Optional[str] = None    # Uploader display name (shared albums)
    width: Optional[int] = None
    height: Optional[int] = None

    @classmethod
    def from_api(cls, data: dict) -> "MediaItem":
        """Build from one entry of a mediaItems response."""
        metadata = data.get("mediaMetadata") or {}
        contributor_info = data.get("contributorInfo") or {}

        def to_int(value) -> Optional[int]:
            try:
                return int(value)
            except (TypeError, ValueError):
                return None

        return cls(
            id=data["id"],
            base_url=data.get("baseUrl", ""),
            mime_type=data.get("mimeType", ""),
            description=data.get("description"),
            creation_time=metadata.get("creationTime"),
            contributor=contributor_info.get("displayName"),
            width=to_int(metadata.get("width")),
            height=to_int(metadata.get("height")),
        )


def exchange_refresh_token(
    google: GoogleConfig,
    session: Optional[requests.Session] = None,
    timeout: int = 30
) -> str:
    """
    Exchange the configured refresh token for a short-lived access token.

    Args:
        google: OAuth client settings holding the refresh token.
        session: HTTP session to use. Defaults to the requests module.
        timeout: Request timeout in seconds.

    Returns:
        Access token string.

    Raises:
        PhotoSourceAuthError: If the exchange fails for any reason.
    """
    http = session or requests
    try:
        response = http.post(
            google.token_url,
            data={
                "grant_type": "refresh_token",
                "client_id": google.client_id,
                "client_secret": google.client_secret,
                "refresh_token": google.refresh_token,
            },
            timeout=timeout,
        )
    except requests.exceptions.RequestException as e:
        raise PhotoSourceAuthError(f"Token refresh failed: {e}") from e

    if response.status_code != 200:
        raise PhotoSourceAuthError(
            f"Token refresh failed: {response.status_code}",
            status_code=response.status_code
        )

    token = response.json().get("access_token")
    if not token:
        raise PhotoSourceAuthError("Token refresh response contained no access_token")
    return token


class GooglePhotosSource:
    """
    Reads a shared album through the Google Photos Library API.

    A token is fetched before every page or batch call via token_provider,
    which defaults to exchanging the configured refresh token.
    """

    def __init__(
        self,
        google: GoogleConfig,
        sync: Optional[SyncConfig] = None,
        session: Optional[requests.Session] = None,
        token_provider: Optional[Callable[[], str]] = None
    ):
        """
        Initialize the client.

        Args:
            google: OAuth client and endpoint settings.
            sync: Paging, batching and timeout settings.
            session: HTTP session (injectable for tests).
            token_provider: Callable returning a fresh access token.
        """
        self.google = google
        self.sync = sync or SyncConfig()
        self.session = session or requests.Session()
        self._token_provider = token_provider or (
            lambda: exchange_refresh_token(
                self.google, self.session, self.sync.request_timeout_seconds
            )
        )

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._token_provider()}"}

    def fetch_album_items(self, album_id: str) -> List[MediaItem]:
        """
        Fetch every media item in an album.

        Pages through mediaItems:search until no nextPageToken is returned.
        All pages are accumulated before returning.

        Raises:
            PhotoSourceError: On any non-success page response.
        """
        url = f"{self.google.api_base_url}/mediaItems:search"
        items: List[MediaItem] = []
        page_token: Optional[str] = None
        pages = 0

        while True:
            body = {"albumId": album_id, "pageSize": self.sync.page_size}
            if page_token:
                body["pageToken"] = page_token

            try:
                response = self.session.post(
                    url,
                    headers=self._auth_headers(),
                    json=body,
                    timeout=self.sync.request_timeout_seconds,
                )
            except requests.exceptions.RequestException as e:
                raise PhotoSourceError(f"Google Photos API request failed: {e}") from e

            if response.status_code != 200:
                raise PhotoSourceError(
                    f"Google Photos API error: {response.status_code}",
                    status_code=response.status_code
                )

            data = response.json()
            for raw_item in data.get("mediaItems") or []:
                items.append(MediaItem.from_api(raw_item))
            pages += 1

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        logger.debug(f"Fetched {len(items)} items in {pages} pages from album {album_id}")
        return items

    def resolve_urls(self, media_ids: Iterable[str]) -> Dict[str, str]:
        """
        Get fresh display URLs for media items.

        IDs are requested in batches of sync.batch_size. A failed batch is
        logged and skipped, so its IDs are simply missing from the result.

        Returns:
            Dict mapping media ID to sized display URL.
        """
        ids = list(dict.fromkeys(media_ids))
        url_map: Dict[str, str] = {}
        if not ids:
            return url_map

        url = f"{self.google.api_base_url}/mediaItems:batchGet"
        batch_size = max(1, self.sync.batch_size)

        for start in range(0, len(ids), batch_size):
            batch = ids[start:start + batch_size]
            headers = self._auth_headers()

            try:
                response = self.session.get(
                    url,
                    headers=headers,
                    params=[("mediaItemIds", media_id) for media_id in batch],
                    timeout=self.sync.request_timeout_seconds,
                )
            except requests.exceptions.RequestException as e:
                logger.warning(f"Failed to fetch URLs for {len(batch)} items: {e}")
                continue

            if response.status_code != 200:
                logger.warning(f"Failed to fetch URLs: {response.status_code}")
                continue

            for result in response.json().get("mediaItemResults") or []:
                media_item = result.get("mediaItem")
                if media_item and media_item.get("baseUrl"):
                    url_map[media_item["id"]] = (
                        f"{media_item['baseUrl']}{self.sync.url_size_suffix}"
                    )

        logger.debug(f"Resolved {len(url_map)} of {len(ids)} display URLs")
        return url_map
