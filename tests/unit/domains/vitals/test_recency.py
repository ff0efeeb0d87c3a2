"""Tests for the "time since" formatter."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from healthpath.domains.vitals.domain_logic.recency import time_since

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "delta, expected",
    [
        (timedelta(seconds=30), "Just now"),
        (timedelta(seconds=60), "Just now"),
        (timedelta(seconds=61), "1 minutes ago"),
        (timedelta(minutes=2), "2 minutes ago"),
        (timedelta(minutes=45), "45 minutes ago"),
        (timedelta(hours=3), "3 hours ago"),
        (timedelta(days=4), "4 days ago"),
        (timedelta(days=65), "2 months ago"),
        (timedelta(days=800), "2 years ago"),
    ],
)
def test_buckets(delta, expected):
    assert time_since(NOW - delta, now=NOW) == expected


def test_one_unit_falls_to_smaller_bucket():
    # Exactly one hour is not > 1 hour, so minutes are used.
    assert time_since(NOW - timedelta(hours=1), now=NOW) == "60 minutes ago"


def test_accepts_iso_string():
    assert time_since("2026-10-17T09:00:00.000Z", now=NOW) == "3 hours ago"


def test_future_date_is_just_now():
    assert time_since(NOW + timedelta(hours=5), now=NOW) == "Just now"


def test_older_readings_never_read_newer():
    order = ["Just now", "minutes", "hours", "days", "months", "years"]

    def rank(text: str) -> int:
        return next(i for i, key in enumerate(order) if key in text)

    deltas = [timedelta(seconds=s) for s in (10, 500, 20_000, 400_000, 6_000_000, 80_000_000)]
    ranks = [rank(time_since(NOW - d, now=NOW)) for d in deltas]
    assert ranks == sorted(ranks)
