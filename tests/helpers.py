"""Shared time helpers for tests."""

from datetime import datetime, timedelta, timezone


def minutes_ago(minutes: float, now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now - timedelta(minutes=minutes)
