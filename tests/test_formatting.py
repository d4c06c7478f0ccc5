"""Tests for presentation helpers."""

from datetime import datetime, timedelta, timezone

from quantum5ocial.services.formatting import pick_profile, time_ago

NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_time_ago_units():
    assert time_ago(NOW - timedelta(seconds=12), NOW) == "12s"
    assert time_ago(NOW - timedelta(minutes=5), NOW) == "5m"
    assert time_ago(NOW - timedelta(hours=3), NOW) == "3h"
    assert time_ago(NOW - timedelta(days=2, hours=5), NOW) == "2d"


def test_time_ago_never_below_one_second():
    assert time_ago(NOW, NOW) == "1s"
    assert time_ago(NOW + timedelta(minutes=1), NOW) == "1s"


def test_time_ago_naive_timestamp_is_utc():
    assert time_ago(datetime(2024, 5, 1, 11, 0, 0), NOW) == "1h"


def test_time_ago_missing_timestamp():
    assert time_ago(None, NOW) is None


def test_pick_profile():
    assert pick_profile(None) is None
    assert pick_profile([]) is None
    assert pick_profile({"id": "a"}) == {"id": "a"}
    assert pick_profile([{"id": "a"}, {"id": "b"}]) == {"id": "a"}
