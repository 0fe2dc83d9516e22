import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./reservas.db")
CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), ["http://localhost:4200"])

# Scheduling rules
DEFAULT_BUSINESS_TIMEZONE = os.getenv("DEFAULT_BUSINESS_TIMEZONE", "America/Mexico_City")
SLOT_GRANULARITY_MINUTES = _get_int(os.getenv("SLOT_GRANULARITY_MINUTES"), 15)
PEAK_WINDOW_START_HOUR = _get_int(os.getenv("PEAK_WINDOW_START_HOUR"), 10)
PEAK_WINDOW_END_HOUR = _get_int(os.getenv("PEAK_WINDOW_END_HOUR"), 16)
DEFAULT_MAX_OCCURRENCES = _get_int(os.getenv("DEFAULT_MAX_OCCURRENCES"), 52)
# "reject" fails a series that would double-book; "allow" skips the check.
RECURRENCE_CONFLICT_POLICY = os.getenv("RECURRENCE_CONFLICT_POLICY", "reject").strip().lower()
MAX_APPOINTMENT_NOTES_LENGTH = _get_int(os.getenv("MAX_APPOINTMENT_NOTES_LENGTH"), 600)

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = _get_int(os.getenv("JWT_EXPIRES_MINUTES"), 60)

RECURRENCE_CONFLICT_POLICIES = {"reject", "allow"}


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if SLOT_GRANULARITY_MINUTES < 1:
        raise RuntimeError("SLOT_GRANULARITY_MINUTES must be at least 1.")
    if not 0 <= PEAK_WINDOW_START_HOUR < PEAK_WINDOW_END_HOUR <= 24:
        raise RuntimeError("PEAK_WINDOW_START_HOUR must be before PEAK_WINDOW_END_HOUR.")
    if DEFAULT_MAX_OCCURRENCES < 1:
        raise RuntimeError("DEFAULT_MAX_OCCURRENCES must be at least 1.")
    if RECURRENCE_CONFLICT_POLICY not in RECURRENCE_CONFLICT_POLICIES:
        raise RuntimeError(
            f"RECURRENCE_CONFLICT_POLICY must be one of {sorted(RECURRENCE_CONFLICT_POLICIES)}."
        )
