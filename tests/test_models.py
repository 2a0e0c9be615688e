# Copyright (c) 2025 Luc Vincent. All Rights Reserved.
"""
Tests for timestamp helpers and record serialization.
"""

from datetime import datetime, timezone

import pytest

from journeymap.models import Location, Photo, parse_timestamp, year_of


class TestParseTimestamp:

    @pytest.mark.parametrize("value,expected_us", [
        ("2019-06-01T10:00:00Z", 0),
        ("2019-06-01T10:00:00.5Z", 500000),
        ("2019-06-01T10:00:00.123Z", 123000),
        ("2019-06-01T10:00:00.123456789Z", 123456),
    ])
    def test_fractional_seconds(self, value, expected_us):
        parsed = parse_timestamp(value)
        assert parsed == datetime(2019, 6, 1, 10, 0, 0, expected_us, tzinfo=timezone.utc)

    def test_offset_kept(self):
        parsed = parse_timestamp("2019-06-01T10:00:00.25+02:00")
        assert parsed.astimezone(timezone.utc).hour == 8
        assert parsed.microsecond == 250000

    def test_naive_is_utc(self):
        assert parse_timestamp("2019-06-01T10:00:00").tzinfo == timezone.utc

    def test_year_is_utc(self):
        assert year_of("2019-01-01T01:00:00+03:00") == 2018


class TestRecordDicts:

    def test_photo_uses_wire_names(self):
        photo = Photo(id="p1", caption="Hi", taken_at="2019-06-01T10:00:00Z")
        data = photo.to_dict()
        assert data["takenAt"] == "2019-06-01T10:00:00Z"
        assert Photo.from_dict(data) == photo

    def test_location_uses_wire_names(self):
        location = Location(id="paris-2019", name="Paris", year=2019, photo_ids=["p1"])
        assert location.to_dict()["photoIds"] == ["p1"]
