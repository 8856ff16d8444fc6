from datetime import datetime, time, timedelta

from campus_connect.api.auth.auth import create_access_token
from campus_connect.services.service_helper import utcnow

PASSWORD = "secret123"


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


def next_week_at(hour: int = 10, minute: int = 0) -> datetime:
    """A naive UTC datetime one week ahead, always in the future."""
    day = (utcnow() + timedelta(days=7)).date()
    return datetime.combine(day, time(hour, minute))


def iso_utc(moment: datetime) -> str:
    return moment.isoformat() + "Z"
