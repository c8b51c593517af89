"""Time Utilities - UTC timestamps and formatting"""
from datetime import datetime, timezone, timedelta
from typing import Optional
from dateutil import parser as date_parser


def utc_now() -> datetime:
    """Get current UTC datetime (timezone aware)"""
    return datetime.now(timezone.utc)


def storage_now() -> datetime:
    """
    Current UTC time as stored in MongoDB.

    pymongo returns naive UTC datetimes (tz_aware=False), so everything we
    persist and compare against stored values is naive UTC.
    """
    return utc_now().replace(tzinfo=None)


def to_storage(dt: datetime) -> datetime:
    """Normalize any datetime to naive UTC"""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string

    Args:
        dt: Datetime object

    Returns:
        ISO formatted string with Z suffix for UTC
    """
    if dt.tzinfo is None:
        # Assume UTC if no timezone
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 string to datetime

    Args:
        iso_string: ISO formatted datetime string

    Returns:
        Datetime object in UTC
    """
    dt = date_parser.isoparse(iso_string)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def minutes_ago(minutes: int, now: Optional[datetime] = None) -> datetime:
    """Naive UTC datetime `minutes` before now"""
    return (now or storage_now()) - timedelta(minutes=minutes)


def age_in_hours(dt: datetime, now: Optional[datetime] = None) -> int:
    """Whole hours elapsed since `dt` (floored)"""
    delta = (now or storage_now()) - to_storage(dt)
    return int(delta.total_seconds() // 3600)
