from datetime import date, datetime, time, timezone
from math import ceil
from typing import Optional


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime | str) -> datetime:
    """
    Convert an ISO string or datetime (aware or naive) to naive UTC.
    Naive input is assumed to already be UTC.
    """
    if isinstance(value, str):
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        value = datetime.fromisoformat(value)
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def to_naive_time(t: str | time) -> time:
    """Convert "HH:MM[:SS]" strings or tz-aware times to naive time."""
    if isinstance(t, time):
        return t.replace(tzinfo=None)
    if t.endswith("Z"):
        t = t[:-1]
    return time.fromisoformat(t).replace(tzinfo=None)


def day_of_week_sunday_first(d: date) -> int:
    # 0=Sunday ... 6=Saturday
    return d.isoweekday() % 7


def day_bounds(d: date) -> tuple[datetime, datetime]:
    start = datetime.combine(d, time.min)
    return start, datetime.combine(d, time.max)


def build_pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": ceil(total / limit) if limit else 0,
    }


def truncate(text: Optional[str], length: int = 50) -> str:
    if not text:
        return ""
    return text if len(text) <= length else f"{text[:length]}..."
