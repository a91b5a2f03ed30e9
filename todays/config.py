"""Configuration for the Today's Todos client and replica service."""
import os
from pathlib import Path

import pytz
from dotenv import load_dotenv

# Load environment variables but prioritize local development
load_dotenv()

ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")

# Remote replica service
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./todays_replica.db")
AUTH_SECRET = os.environ.get("AUTH_SECRET", "dev-secret-change-me")
JWT_ALGORITHM = "HS256"
TOKEN_EXPIRE_DAYS = int(os.environ.get("TOKEN_EXPIRE_DAYS", "7"))
FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:3000")
CORS_ORIGIN_REGEX = os.environ.get("CORS_ORIGIN_REGEX", r"https://.*\.vercel\.app")

# Client
API_URL = os.environ.get("TODAYS_API_URL", "http://localhost:8000")
LOCAL_DB_PATH = Path(
    os.environ.get("TODAYS_LOCAL_DB", str(Path.home() / ".todays" / "local.db"))
).expanduser()
TIMEZONE = os.environ.get("TODAYS_TIMEZONE", "UTC")

SYNC_PUSH_DEBOUNCE_SECONDS = float(os.environ.get("SYNC_PUSH_DEBOUNCE_SECONDS", "2.0"))
SYNC_PULL_DEBOUNCE_SECONDS = float(os.environ.get("SYNC_PULL_DEBOUNCE_SECONDS", "1.0"))
DAY_CHECK_INTERVAL_SECONDS = float(os.environ.get("DAY_CHECK_INTERVAL_SECONDS", "60"))

# Version of the remote document layout
SCHEMA_VERSION = 1
# Version of the manual export envelope
EXPORT_VERSION = 1

DEFAULT_DAY_START = "05:00"


def get_timezone(name: str | None = None):
    """Return the pytz zone used to place day boundaries."""
    return pytz.timezone(name or TIMEZONE)
