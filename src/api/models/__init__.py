"""API Pydantic models."""

from .requests import (
    BillingDateRequest,
    ClickUpWebhookEvent,
    GoalDiscoverRequest,
    GoalTestRequest,
    TaskCreatedEvent,
    TaskUpdatedEvent,
)
from .responses import (
    BillingDateResponse,
    ErrorCodes,
    ErrorResponse,
    HealthResponse,
    KeapGoalStatus,
    TimeToLeaveResponse,
)

__all__ = [
    "BillingDateRequest",
    "BillingDateResponse",
    "ClickUpWebhookEvent",
    "ErrorCodes",
    "ErrorResponse",
    "GoalDiscoverRequest",
    "GoalTestRequest",
    "HealthResponse",
    "KeapGoalStatus",
    "TaskCreatedEvent",
    "TaskUpdatedEvent",
    "TimeToLeaveResponse",
]
