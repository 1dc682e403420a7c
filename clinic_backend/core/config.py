import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic.db")

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:5173"])

# Cancelled appointments still hold their slot when enabled.
INCLUDE_CANCELLED_IN_CONFLICT_CHECK = _get_bool(
    os.getenv("INCLUDE_CANCELLED_IN_CONFLICT_CHECK"),
    default=False,
)
COMPLETION_GRACE_MINUTES = int(os.getenv("COMPLETION_GRACE_MINUTES", "5"))


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and DATABASE_URL.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must point at Postgres in production.")
    if COMPLETION_GRACE_MINUTES < 0:
        raise RuntimeError("COMPLETION_GRACE_MINUTES must not be negative.")
