# Copyright (c) 2025-2026 Luc Vincent. All Rights Reserved.
"""
Pytest configuration and shared fixtures for JourneyMap tests.
"""

import tempfile
from pathlib import Path

import pytest


class FakePhotoSource:
    """Stands in for GooglePhotosSource without any network access."""

    def __init__(self, items=None, urls=None, fail_ids=None):
        self.items = list(items or [])
        self.urls = dict(urls or {})
        self.fail_ids = set(fail_ids or [])
        self.fetch_calls = []
        self.resolve_calls = []

    def fetch_album_items(self, album_id):
        self.fetch_calls.append(album_id)
        return list(self.items)

    def resolve_urls(self, media_ids):
        ids = list(media_ids)
        self.resolve_calls.append(ids)
        return {
            media_id: self.urls.get(media_id, f"https://lh3.googleusercontent.com/{media_id}=w800-h600")
            for media_id in ids
            if media_id not in self.fail_ids
        }


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config_dict():
    """Return a minimal valid config dictionary."""
    return {
        "google": {
            "client_id": "client-123.apps.googleusercontent.com",
            "client_secret": "client-secret",
            "redirect_uri": "http://localhost:8080/oauth/callback",
            "refresh_token": "1//refresh-token"
        },
        "album": {
            "album_id": "ALBUM123"
        },
        "sync": {
            "secret": "cron-secret",
            "page_size": 100,
            "batch_size": 50,
            "url_size_suffix": "=w800-h600",
            "request_timeout_seconds": 30
        },
        "store": {
            "backend": "memory",
            "path": "/tmp/journeymap_test_store"
        },
        "web": {
            "port": 8080,
            "host": "127.0.0.1",
            "dev_mode": False
        }
    }


@pytest.fixture
def sample_config_yaml(temp_dir, sample_config_dict):
    """Create a temporary config.yaml file."""
    import yaml
    config_path = temp_dir / "config.yaml"
    with open(config_path, 'w') as f:
        yaml.dump(sample_config_dict, f)
    return config_path


@pytest.fixture
def sample_config(sample_config_yaml):
    """Loaded config, isolated from the real environment."""
    from journeymap.config import load_config
    return load_config(str(sample_config_yaml), environ={})


@pytest.fixture
def domain_store():
    """Domain store over an in-memory backend."""
    from journeymap.store import DomainStore, MemoryKeyValueStore
    return DomainStore(MemoryKeyValueStore())


@pytest.fixture
def make_item():
    """Factory for MediaItem instances."""
    from journeymap.photo_source import MediaItem

    def _make(media_id, description=None, creation_time="2019-06-01T10:00:00Z",
              contributor=None):
        return MediaItem(
            id=media_id,
            base_url=f"https://lh3.googleusercontent.com/lr/{media_id}",
            mime_type="image/jpeg",
            description=description,
            creation_time=creation_time,
            contributor=contributor,
        )

    return _make


@pytest.fixture
def sample_api_item():
    """A mediaItems[] entry as returned by the Library API."""
    return {
        "id": "AKb7xQ1",
        "description": "Our trip! [Paris] #pranav",
        "productUrl": "https://photos.google.com/lr/album/ALBUM123/photo/AKb7xQ1",
        "baseUrl": "https://lh3.googleusercontent.com/lr/AKb7xQ1",
        "mimeType": "image/jpeg",
        "mediaMetadata": {
            "creationTime": "2019-06-01T10:00:00Z",
            "width": "4032",
            "height": "3024",
            "photo": {"cameraMake": "Google", "cameraModel": "Pixel 3"}
        },
        "contributorInfo": {
            "profilePictureBaseUrl": "https://lh3.googleusercontent.com/a/profile",
            "displayName": "Pranav Kumar"
        },
        "filename": "PXL_20190601.jpg"
    }


@pytest.fixture
def fake_source_class():
    return FakePhotoSource
