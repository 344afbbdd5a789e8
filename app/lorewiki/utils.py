from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime(timezone=False) columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()


def clean_str(value: object) -> str:
    """Trimmed string form of optional user input; non-strings become ''."""
    if not isinstance(value, str):
        return ""
    return value.strip()
