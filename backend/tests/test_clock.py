"""
Tests for the UTC timestamp helpers.
"""
from datetime import datetime, timedelta, timezone

from boxleague.models.player import Player
from boxleague.utils.clock import as_utc, utcnow


class TestAsUtc:
    def test_naive_is_taken_as_utc(self):
        assert as_utc(datetime(2024, 5, 1, 18, 0)) == datetime(2024, 5, 1, 18, 0, tzinfo=timezone.utc)

    def test_aware_is_converted(self):
        paris = timezone(timedelta(hours=2))
        converted = as_utc(datetime(2024, 5, 1, 20, 0, tzinfo=paris))
        assert converted.tzinfo == timezone.utc
        assert converted.hour == 18

    def test_none_passes_through(self):
        assert as_utc(None) is None


class TestDefaults:
    def test_utcnow_is_aware(self):
        assert utcnow().tzinfo == timezone.utc

    def test_created_at_is_aware(self):
        assert Player(first_name="Ann", last_name="Archer").created_at.tzinfo == timezone.utc
