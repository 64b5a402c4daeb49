"""
Travel-time estimation for appointment tasks.
"""

from datetime import datetime, timedelta, timezone

from core.config import APPOINTMENT_TAG, DEFAULT_TRAVEL_MINUTES, TRAVEL_TIMES
from models.tasks import TaskRecord


def has_appointment_tag(task: TaskRecord, marker: str = APPOINTMENT_TAG) -> bool:
    """True if any tag name contains the marker (case-insensitive)."""
    marker = marker.lower()
    return any(marker in (tag.get("name") or "").lower() for tag in task.get("tags") or [])


def estimate_travel_minutes(
    task: TaskRecord,
    table: dict[str, int] | None = None,
    default: int = DEFAULT_TRAVEL_MINUTES,
) -> tuple[int, str | None]:
    """
    Pick a travel time from the keyword table.

    Name and description are searched together, lowercased. Keywords are
    tried in table order and the first substring hit wins.

    Returns:
        (minutes, matched keyword or None when the default was used)
    """
    table = TRAVEL_TIMES if table is None else table
    text = f"{task.get('name') or ''} {task.get('description') or ''}".lower()

    for keyword, minutes in table.items():
        if keyword in text:
            return minutes, keyword
    return default, None


def compute_leave_time(start: datetime, minutes: int) -> datetime:
    return start - timedelta(minutes=minutes)


def parse_clickup_timestamp(value: str | int | None) -> datetime | None:
    """ClickUp sends epoch millis, usually as a string."""
    if value in (None, ""):
        return None
    try:
        return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


def to_clickup_timestamp(value: datetime) -> int:
    return int(value.timestamp() * 1000)
