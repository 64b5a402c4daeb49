"""
Data models for ClickUp tasks and the time-to-leave flow.

ClickUp task payloads are plain dicts; the TypedDicts below only describe the
keys this service reads.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypedDict


class TaskTag(TypedDict, total=False):
    name: str


class TaskRecord(TypedDict, total=False):
    """Subset of a ClickUp task used by the estimator."""
    id: str
    name: str
    description: str | None
    tags: list[TaskTag]
    start_date: str | None  # epoch millis as a string
    list: dict[str, Any]
    custom_fields: list[dict[str, Any]]


@dataclass
class TimeToLeaveResult:
    """Outcome of processing one task."""

    task_id: str
    processed: bool = False
    reason: str | None = None
    travel_minutes: int | None = None
    matched_keyword: str | None = None
    start_time: datetime | None = None
    leave_time: datetime | None = None
    strategy: str | None = None
    integrations: dict[str, dict[str, Any]] = field(default_factory=dict)
