"""Helpers for mapping instants to storage bucket keys.

A bucket covers one fixed-width UTC window. Keys look like
``tweets/2024-02-29-1/tweets.json`` where the trailing number is the window
index within the day.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

DEFAULT_WINDOW_HOURS = 8
DEFAULT_KEY_PREFIX = "tweets"
DEFAULT_KEY_FILENAME = "tweets.json"


def validate_window_hours(window_hours: int) -> int:
    """Return window_hours if it splits a day into equal windows."""

    if isinstance(window_hours, bool) or not isinstance(window_hours, int):
        raise ValueError(f"window_hours must be an integer, got {window_hours!r}")
    if not 1 <= window_hours <= 24 or 24 % window_hours:
        raise ValueError(f"window_hours must divide 24 evenly, got {window_hours}")
    return window_hours


def _as_utc(instant: datetime) -> datetime:
    # Naive datetimes are taken to already be UTC.
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def window_start(instant: datetime, window_hours: int = DEFAULT_WINDOW_HOURS) -> datetime:
    """Return the UTC start of the window containing instant."""

    validate_window_hours(window_hours)
    utc = _as_utc(instant)
    hour = (utc.hour // window_hours) * window_hours
    return utc.replace(hour=hour, minute=0, second=0, microsecond=0)


def format_key(
    instant: datetime,
    window_hours: int = DEFAULT_WINDOW_HOURS,
    prefix: str = DEFAULT_KEY_PREFIX,
    filename: str = DEFAULT_KEY_FILENAME,
) -> str:
    """Format the bucket key for the window containing instant."""

    validate_window_hours(window_hours)
    utc = _as_utc(instant)
    index = utc.hour // window_hours
    return f"{prefix}/{utc.year}-{utc.month:02d}-{utc.day:02d}-{index}/{filename}"


def current_key(
    now: datetime,
    window_hours: int = DEFAULT_WINDOW_HOURS,
    prefix: str = DEFAULT_KEY_PREFIX,
    filename: str = DEFAULT_KEY_FILENAME,
) -> str:
    """Return the key of the window active at now."""

    return format_key(now, window_hours, prefix, filename)


def previous_key(
    now: datetime,
    window_hours: int = DEFAULT_WINDOW_HOURS,
    prefix: str = DEFAULT_KEY_PREFIX,
    filename: str = DEFAULT_KEY_FILENAME,
) -> str:
    """Return the key of the window immediately before the one active at now."""

    # Because window_hours divides 24, stepping back one width always lands in
    # the preceding window, across day, month, and year boundaries.
    return format_key(_as_utc(now) - timedelta(hours=window_hours), window_hours, prefix, filename)
