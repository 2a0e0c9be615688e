# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""Tests for the Google Photos client.

HTTP calls go through a MagicMock session; nothing touches the network.
"""

import pytest
import requests
from unittest.mock import MagicMock

from journeymap.config import GoogleConfig, SyncConfig
from journeymap.photo_source import (
    GooglePhotosSource,
    MediaItem,
    PhotoSourceAuthError,
    PhotoSourceError,
    exchange_refresh_token,
)


def make_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    return response


@pytest.fixture
def google_config():
    return GoogleConfig(
        client_id="client-id",
        client_secret="client-secret",
        refresh_token="refresh-token",
    )


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def source(google_config, session):
    return GooglePhotosSource(
        google_config,
        SyncConfig(batch_size=2),
        session=session,
        token_provider=lambda: "access-token",
    )


class TestMediaItem:
    """Tests for MediaItem.from_api."""

    def test_from_api_full(self, sample_api_item):
        item = MediaItem.from_api(sample_api_item)
        assert item.id == "AKb7xQ1"
        assert item.base_url == "https://lh3.googleusercontent.com/lr/AKb7xQ1"
        assert item.mime_type == "image/jpeg"
        assert item.description == "Our trip! [Paris] #pranav"
        assert item.creation_time == "2019-06-01T10:00:00Z"
        assert item.contributor == "Pranav Kumar"
        assert item.width == 4032
        assert item.height == 3024

    def test_from_api_minimal(self):
        item = MediaItem.from_api({"id": "X1"})
        assert item.id == "X1"
        assert item.base_url == ""
        assert item.description is None
        assert item.creation_time is None
        assert item.contributor is None
        assert item.width is None


class TestExchangeRefreshToken:
    """Tests for the refresh token exchange."""

    def test_success(self, google_config, session):
        session.post.return_value = make_response(200, {"access_token": "abc", "expires_in": 3599})

        token = exchange_refresh_token(google_config, session)

        assert token == "abc"
        args, kwargs = session.post.call_args
        assert args[0] == google_config.token_url
        assert kwargs["data"]["grant_type"] == "refresh_token"
        assert kwargs["data"]["refresh_token"] == "refresh-token"
        assert kwargs["data"]["client_id"] == "client-id"

    def test_error_status(self, google_config, session):
        session.post.return_value = make_response(400, {"error": "invalid_grant"})

        with pytest.raises(PhotoSourceAuthError) as exc_info:
            exchange_refresh_token(google_config, session)
        assert exc_info.value.status_code == 400

    def test_missing_token(self, google_config, session):
        session.post.return_value = make_response(200, {})

        with pytest.raises(PhotoSourceAuthError):
            exchange_refresh_token(google_config, session)

    def test_connection_error(self, google_config, session):
        session.post.side_effect = requests.exceptions.ConnectionError("down")

        with pytest.raises(PhotoSourceAuthError):
            exchange_refresh_token(google_config, session)

    def test_auth_error_is_source_error(self):
        assert issubclass(PhotoSourceAuthError, PhotoSourceError)


class TestFetchAlbumItems:
    """Tests for paging through an album."""

    def test_follows_page_tokens(self, source, session):
        session.post.side_effect = [
            make_response(200, {
                "mediaItems": [{"id": "a"}, {"id": "b"}],
                "nextPageToken": "page2",
            }),
            make_response(200, {"mediaItems": [{"id": "c"}]}),
        ]

        items = source.fetch_album_items("ALBUM")

        assert [item.id for item in items] == ["a", "b", "c"]
        assert session.post.call_count == 2
        first_body = session.post.call_args_list[0].kwargs["json"]
        second_body = session.post.call_args_list[1].kwargs["json"]
        assert first_body == {"albumId": "ALBUM", "pageSize": 100}
        assert second_body["pageToken"] == "page2"

    def test_sends_bearer_token(self, source, session):
        session.post.return_value = make_response(200, {"mediaItems": []})

        source.fetch_album_items("ALBUM")

        headers = session.post.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer access-token"

    def test_token_fetched_per_page(self, google_config, session):
        tokens = iter(["t1", "t2"])
        source = GooglePhotosSource(google_config, session=session,
                                    token_provider=lambda: next(tokens))
        session.post.side_effect = [
            make_response(200, {"mediaItems": [{"id": "a"}], "nextPageToken": "p2"}),
            make_response(200, {"mediaItems": [{"id": "b"}]}),
        ]

        source.fetch_album_items("ALBUM")

        auth = [c.kwargs["headers"]["Authorization"] for c in session.post.call_args_list]
        assert auth == ["Bearer t1", "Bearer t2"]

    def test_empty_album(self, source, session):
        session.post.return_value = make_response(200, {})

        assert source.fetch_album_items("ALBUM") == []

    def test_error_status_aborts(self, source, session):
        session.post.side_effect = [
            make_response(200, {"mediaItems": [{"id": "a"}], "nextPageToken": "p2"}),
            make_response(500, {}),
        ]

        with pytest.raises(PhotoSourceError) as exc_info:
            source.fetch_album_items("ALBUM")
        assert exc_info.value.status_code == 500

    def test_connection_error_aborts(self, source, session):
        session.post.side_effect = requests.exceptions.Timeout("slow")

        with pytest.raises(PhotoSourceError):
            source.fetch_album_items("ALBUM")

    def test_token_failure_propagates(self, google_config, session):
        def failing_token():
            raise PhotoSourceAuthError("Token refresh failed: 401", status_code=401)

        source = GooglePhotosSource(google_config, session=session, token_provider=failing_token)

        with pytest.raises(PhotoSourceAuthError):
            source.fetch_album_items("ALBUM")
        session.post.assert_not_called()


class TestResolveUrls:
    """Tests for batched URL resolution."""

    @staticmethod
    def batch_payload(ids):
        return {
            "mediaItemResults": [
                {"mediaItem": {"id": i, "baseUrl": f"https://lh3.googleusercontent.com/lr/{i}"}}
                for i in ids
            ]
        }

    def test_empty_input_makes_no_request(self, source, session):
        assert source.resolve_urls([]) == {}
        session.get.assert_not_called()

    def test_appends_size_suffix(self, source, session):
        session.get.return_value = make_response(200, self.batch_payload(["a"]))

        urls = source.resolve_urls(["a"])

        assert urls == {"a": "https://lh3.googleusercontent.com/lr/a=w800-h600"}

    def test_batches_by_batch_size(self, source, session):
        session.get.side_effect = [
            make_response(200, self.batch_payload(["a", "b"])),
            make_response(200, self.batch_payload(["c"])),
        ]

        urls = source.resolve_urls(["a", "b", "c"])

        assert set(urls) == {"a", "b", "c"}
        assert session.get.call_count == 2
        first_params = session.get.call_args_list[0].kwargs["params"]
        assert first_params == [("mediaItemIds", "a"), ("mediaItemIds", "b")]

    def test_duplicate_ids_requested_once(self, source, session):
        session.get.return_value = make_response(200, self.batch_payload(["a", "b"]))

        source.resolve_urls(["a", "b", "a"])

        assert session.get.call_count == 1

    def test_failed_batch_skipped(self, source, session):
        session.get.side_effect = [
            make_response(500, {}),
            make_response(200, self.batch_payload(["c"])),
        ]

        urls = source.resolve_urls(["a", "b", "c"])

        assert list(urls) == ["c"]

    def test_connection_error_batch_skipped(self, source, session):
        session.get.side_effect = [
            requests.exceptions.ConnectionError("reset"),
            make_response(200, self.batch_payload(["c"])),
        ]

        urls = source.resolve_urls(["a", "b", "c"])

        assert list(urls) == ["c"]

    def test_item_errors_skipped(self, source, session):
        session.get.return_value = make_response(200, {
            "mediaItemResults": [
                {"status": {"code": 5, "message": "NOT_FOUND"}},
                {"mediaItem": {"id": "b", "baseUrl": "https://lh3.googleusercontent.com/lr/b"}},
            ]
        })

        urls = source.resolve_urls(["a", "b"])

        assert list(urls) == ["b"]
