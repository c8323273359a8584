from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(dt: datetime) -> datetime:
    # naive datetimes are treated as UTC
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def iso_timestamp(dt: datetime) -> str:
    """2026-10-18T13:05:09.120Z, the shape browsers get from Date.toISOString()."""
    utc = _as_aware(dt).astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def human_timestamp(dt: datetime) -> str:
    """Sunday, October 18, 2026 at 01:05 PM UTC"""
    dt = _as_aware(dt)
    zone = dt.tzname() or "UTC"
    return f"{dt:%A, %B} {dt.day}, {dt:%Y} at {dt:%I:%M %p} {zone}"
