from __future__ import annotations

from datetime import datetime, timezone


def to_iso(dt: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with Z (naive values are treated as UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt.isoformat().replace("+00:00", "Z")


def utcnow_iso() -> str:
    """Current UTC time as ISO-8601 string with Z."""
    return to_iso(datetime.now(timezone.utc))


def parse_iso(s: str) -> datetime:
    """Parse an ISO timestamp or date; values without an offset are taken as UTC."""
    dt = datetime.fromisoformat(str(s).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def month_bounds(year: int, month: int) -> tuple[str, str]:
    """Return [start, end) date strings for a calendar month."""
    if month < 1 or month > 12:
        raise ValueError("invalid_month")
    if year < 1 or year > 9998:
        raise ValueError("invalid_year")
    start = f"{year:04d}-{month:02d}-01"
    if month == 12:
        end = f"{year + 1:04d}-01-01"
    else:
        end = f"{year:04d}-{month + 1:02d}-01"
    return start, end
