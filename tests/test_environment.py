"""
Tests for environment.py — optional certificate details and the bounded
location read.
Run: python -m pytest tests/ -v
"""
import threading
from datetime import datetime, timezone

import pytest

from cert_quiz.environment import collect_extra_details, read_location
from cert_quiz.models import ExtraDetails, GeoLocation


class TestReadLocation:
    def test_no_provider(self):
        assert read_location(None) is None

    def test_geolocation_passthrough(self):
        loc = GeoLocation(1.0, 2.0, 3.0)
        assert read_location(lambda: loc) == loc

    def test_dict_provider(self):
        loc = read_location(lambda: {"latitude": "51.5", "longitude": -0.12, "accuracy": 20})
        assert loc == GeoLocation(51.5, -0.12, 20.0)

    @pytest.mark.parametrize("value, expected", [
        ((10, 20), GeoLocation(10.0, 20.0, None)),
        ([10, 20, 5], GeoLocation(10.0, 20.0, 5.0)),
        ((10, 20, None), GeoLocation(10.0, 20.0, None)),
        (("x", 20), None),
        ((1,), None),
        ("51.5,-0.12", None),
    ])
    def test_sequence_provider(self, value, expected):
        assert read_location(lambda: value) == expected

    def test_timeout_returns_none(self):
        release = threading.Event()

        def slow():
            release.wait(5)
            return (1, 2)

        try:
            assert read_location(slow, timeout_s=0.05) is None
        finally:
            release.set()

    def test_permission_denied_returns_none(self):
        def refuse():
            raise PermissionError("user denied")

        assert read_location(refuse) is None

    def test_provider_error_returns_none(self):
        def broken():
            raise RuntimeError("no GPS")

        assert read_location(broken) is None


class TestExtraDetails:
    def test_from_mapping_blank_is_absent(self):
        extra = ExtraDetails.from_mapping({"local_time": "  ", "time_zone": "UTC", "user_agent": None})
        assert extra.local_time is None
        assert extra.user_agent is None
        assert extra.present_fields() == ["time_zone"]
        assert extra.has_any

    def test_from_mapping_none(self):
        extra = ExtraDetails.from_mapping(None)
        assert not extra.has_any

    def test_from_mapping_bad_location(self):
        extra = ExtraDetails.from_mapping({"location": {"latitude": "north"}})
        assert extra.location is None


class TestCollectExtraDetails:
    NOW = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)

    def test_times_always_present(self):
        extra = collect_extra_details(now=self.NOW)
        assert extra.utc_time == "2026-03-14 09:30:00 UTC"
        assert extra.local_time is not None
        assert extra.time_zone is not None

    def test_optional_fields_absent(self):
        extra = collect_extra_details(now=self.NOW)
        assert extra.user_agent is None
        assert extra.location is None

    def test_blank_user_agent_is_absent(self):
        assert collect_extra_details(user_agent="   ", now=self.NOW).user_agent is None

    def test_user_agent_and_location(self):
        extra = collect_extra_details(
            user_agent="Firefox/130.0",
            location_provider=lambda: (48.85, 2.35, 12),
            now=self.NOW,
        )
        assert extra.user_agent == "Firefox/130.0"
        assert extra.location == GeoLocation(48.85, 2.35, 12.0)
