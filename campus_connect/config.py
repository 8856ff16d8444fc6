# campus_connect/config.py
import os
import re
import warnings
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

_DEV_SECRET = "campus-connect-dev-secret"
_DEV_REFRESH_SECRET = "campus-connect-dev-refresh-secret"


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_duration(value: str) -> timedelta:
    """
    Parse durations written the way the JWT settings are written in .env files:
    "15m", "12h", "7d", "30s" or a bare number of seconds.
    """
    value = str(value).strip().lower()
    if value.isdigit():
        return timedelta(seconds=int(value))
    match = re.fullmatch(r"(\d+)\s*([smhdw])", value)
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = int(match.group(1)), match.group(2)
    units = {
        "s": timedelta(seconds=1),
        "m": timedelta(minutes=1),
        "h": timedelta(hours=1),
        "d": timedelta(days=1),
        "w": timedelta(weeks=1),
    }
    return amount * units[unit]


APP_ENV = os.getenv("APP_ENV", "development").strip().lower()
IS_PRODUCTION = APP_ENV == "production"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Supabase exposes a plain Postgres connection string; SQLite is the local fallback.
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./campus_connect.db")
SQL_ECHO = _get_bool("SQL_ECHO")

JWT_SECRET = os.getenv("JWT_SECRET")
JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET")
if not JWT_SECRET:
    warnings.warn("JWT_SECRET is not set; using an insecure development secret.")
    JWT_SECRET = _DEV_SECRET
if not JWT_REFRESH_SECRET:
    warnings.warn("JWT_REFRESH_SECRET is not set; using an insecure development secret.")
    JWT_REFRESH_SECRET = _DEV_REFRESH_SECRET

JWT_ALGORITHM = "HS256"
JWT_EXPIRES_IN = os.getenv("JWT_EXPIRES_IN", "7d")
JWT_REFRESH_EXPIRES_IN = os.getenv("JWT_REFRESH_EXPIRES_IN", "30d")
ACCESS_TOKEN_EXPIRE = parse_duration(JWT_EXPIRES_IN)
REFRESH_TOKEN_EXPIRE = parse_duration(JWT_REFRESH_EXPIRES_IN)

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
PORT = int(os.getenv("PORT", "5000"))

# Upper bound for sys_admin accounts created through public registration.
MAX_SYS_ADMINS = int(os.getenv("MAX_SYS_ADMINS", "2"))

REMINDER_WINDOW_HOURS = int(os.getenv("REMINDER_WINDOW_HOURS", "24"))
ENABLE_SCHEDULER = _get_bool("ENABLE_SCHEDULER", default=True)


def validate_runtime_config() -> None:
    """Refuse to boot a production process with development secrets."""
    if not IS_PRODUCTION:
        return
    if JWT_SECRET == _DEV_SECRET or JWT_REFRESH_SECRET == _DEV_REFRESH_SECRET:
        raise RuntimeError("JWT_SECRET and JWT_REFRESH_SECRET must be set in production.")
    if JWT_SECRET == JWT_REFRESH_SECRET:
        raise RuntimeError("JWT_SECRET and JWT_REFRESH_SECRET must be distinct.")
