"""
Timestamp helpers shared by services and repositories.
All timestamps are timezone-aware UTC and travel as ISO-8601 strings.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def expires_in(hours: float = 0, days: float = 0) -> str:
    return (utc_now() + timedelta(hours=hours, days=days)).isoformat()


def parse_timestamp(value: Optional[Union[str, datetime]]) -> Optional[datetime]:
    """Parse an ISO string (or pass through a datetime); naive values are taken as UTC."""
    if value is None:
        return None
    parsed = value if isinstance(value, datetime) else datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_expired(value: Optional[Union[str, datetime]]) -> bool:
    expires_at = parse_timestamp(value)
    return expires_at is None or expires_at <= utc_now()
