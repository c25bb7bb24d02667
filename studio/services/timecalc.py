from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from ..core.config import settings


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def local_today(tz: str | None = None) -> date:
    """Calendar date in the configured timezone (the one timer entries use)."""
    return datetime.now(ZoneInfo(tz or settings.TZ)).date()


def isoformat_utc(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def parse_iso(ts: str | None, tz: str | None = None) -> datetime | None:
    """Parse an ISO-8601 timestamp string.
    If naive, attach the provided tz (defaults to the configured one).
    Returns None if ts is falsy.
    """
    if not ts:
        return None
    dt = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo(tz or settings.TZ))
    return dt


def parse_date(value: str | date | None) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def compute_minutes(start_iso: str | None, end_iso: str | None, tz: str | None = None) -> int:
    """Return whole minutes between start and end (non-negative)."""
    s = parse_iso(start_iso, tz)
    e = parse_iso(end_iso, tz)
    if not s or not e:
        return 0
    delta = int((e - s).total_seconds() // 60)
    return max(delta, 0)


def format_duration(seconds: int | float | None) -> str:
    """``HH:MM:SS`` with zero padding; hours keep growing past 99."""
    total = max(int(seconds or 0), 0)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_minutes(minutes: int | None) -> str:
    if not minutes:
        return "0m"
    h, m = divmod(int(minutes), 60)
    if h > 0:
        return f"{h}h {m}m" if m > 0 else f"{h}h"
    return f"{m}m"


def format_hours(hours: float | None) -> str:
    """Readable ``1h 30m`` style label for a decimal hour count."""
    value = float(hours or 0)
    h = int(value)
    m = round((value - h) * 60)
    if m == 60:
        h, m = h + 1, 0
    if h > 0:
        return f"{h}h {m}m" if m > 0 else f"{h}h"
    return f"{m}m"
