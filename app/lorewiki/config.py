import os
from dataclasses import dataclass

from app.lorewiki.constants import DEFAULT_SUMMARY_MAX_LENGTH, SUMMARY_COLUMN_LENGTH


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    log_level: str

    summary_max_length: int


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).")


def _summary_max_length() -> int:
    value = _getenv_int("ARTICLE_SUMMARY_MAX_LENGTH", DEFAULT_SUMMARY_MAX_LENGTH)
    # Summaries are stored in a String(512) column.
    if not 1 <= value <= SUMMARY_COLUMN_LENGTH:
        raise RuntimeError(
            f"ARTICLE_SUMMARY_MAX_LENGTH must be between 1 and {SUMMARY_COLUMN_LENGTH} (got {value})."
        )
    return value


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///lorewiki.db"),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        summary_max_length=_summary_max_length(),
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "LOG_LEVEL": s.log_level,
        "ARTICLE_SUMMARY_MAX_LENGTH": s.summary_max_length,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,  # Require HTTPS in production
        # article bodies are plain text; 2MB is plenty
        "MAX_CONTENT_LENGTH": 2 * 1024 * 1024,
    }
