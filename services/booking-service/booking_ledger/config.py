import os


def _flag(name: str, default: str) -> bool:
    return (os.getenv(name) or default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("BOOKING_DB")
if not DATABASE_URL:
    raise RuntimeError("BOOKING_DB environment variable is not set")

DB_ECHO = _flag("DB_ECHO", "false")

JWT_SECRET = os.getenv("JWT_SECRET")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM") or "HS256"

if not JWT_SECRET:
    raise RuntimeError("JWT_SECRET environment variable is not set")

# optional: without it the caller's listing snapshot is trusted
LISTING_SERVICE_URL = (os.getenv("LISTING_SERVICE_URL") or "").rstrip("/") or None
LISTING_TIMEOUT = float(os.getenv("LISTING_TIMEOUT") or "3.0")

RABBIT_URL = os.getenv("RABBIT_URL")  # optional in dev, required if you want events

ENFORCE_AVAILABILITY = _flag("BOOKING_ENFORCE_AVAILABILITY", "true")

LOG_LEVEL = os.getenv("LOG_LEVEL") or "INFO"
LOG_JSON = _flag("LOG_JSON", "true")
