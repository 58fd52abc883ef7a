import os

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./wayfarer.db")

# Logging
LOG_PATH = os.getenv("LOG_PATH")  # defaults to ./logs/api.log
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Identity
ALLOW_DEV_AUTH = _env_flag("ALLOW_DEV_AUTH")
FIREBASE_CREDENTIALS_PATH = os.getenv(
    "FIREBASE_CREDENTIALS_PATH",
    os.path.join(os.path.dirname(__file__), "serviceAccountKey.json"),
)
SHADOW_USER_COOKIE = "shadow_user_id"
SHADOW_USER_HEADER = "X-Shadow-User-ID"
DEV_USER_HEADER = "X-User-ID"

FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")

# Public trips feed
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "12"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "50"))

if APP_ENV == "production" and ALLOW_DEV_AUTH:
    raise RuntimeError("ALLOW_DEV_AUTH must not be enabled in production")
