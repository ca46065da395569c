import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Invalid integer for {name}: {raw!r}") from None


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./scheduling.db")

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:4200"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = _get_int("JWT_EXPIRES_MINUTES", 60)

AVAILABILITY_WINDOW_DAYS = _get_int("AVAILABILITY_WINDOW_DAYS", 30)
DEFAULT_APPOINTMENT_DURATION_MINUTES = _get_int("DEFAULT_APPOINTMENT_DURATION_MINUTES", 30)
MAX_APPOINTMENT_DURATION_MINUTES = _get_int("MAX_APPOINTMENT_DURATION_MINUTES", 480)


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if AVAILABILITY_WINDOW_DAYS <= 0:
        raise RuntimeError("AVAILABILITY_WINDOW_DAYS must be positive.")
    if not 0 < DEFAULT_APPOINTMENT_DURATION_MINUTES <= MAX_APPOINTMENT_DURATION_MINUTES:
        raise RuntimeError(
            "DEFAULT_APPOINTMENT_DURATION_MINUTES must be positive and no larger than "
            "MAX_APPOINTMENT_DURATION_MINUTES."
        )
