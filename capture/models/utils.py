"""Timestamp utility."""

from datetime import datetime, timezone


def utc_timestamp(now: datetime | None = None) -> str:
    """Format a UTC timestamp the way the viewers expect: 2024-01-31T09:15:00Z"""
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")
