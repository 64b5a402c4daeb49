"""Pydantic response models for API endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serialises with camelCase keys, accepts either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str  # "healthy"
    service: str
    version: str
    timestamp: str  # ISO 8601 UTC
    integrations: dict[str, bool] = {}


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    code: str
    details: list[str] = []
    example: dict[str, Any] | None = None


class ErrorCodes:
    """Error code constants."""

    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    GOAL_NOT_FOUND = "GOAL_NOT_FOUND"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# BILLING
# =============================================================================


class DelayInfo(CamelModel):
    days: int
    months: int
    original: str


class IntegrationStatus(CamelModel):
    """Outcome of one reporting integration."""

    attempted: bool = False
    success: bool = False
    record_id: str | None = None
    response: Any = None
    error: str | None = None
    reason: str | None = None


class GoalDiscoveryInfo(CamelModel):
    goal_id: int | str
    campaign_id: int | str | None = None
    campaign_name: str | None = None
    goal_name: str
    discovery_method: str


class KeapGoalStatus(CamelModel):
    """Serialised GoalResult."""

    attempted: bool = False
    success: bool = False
    goal_type: str | None = None
    method: str | None = None
    source: str | None = None
    call_name: str | None = None
    integration: str | None = None
    goal_id: int | str | None = None
    goal_discovery: GoalDiscoveryInfo | None = None
    discovery_error: str | None = None
    error_detail: str | None = None
    response: Any = None
    error: str | None = None
    reason: str | None = None
    skipped: bool | None = None


class BillingIntegrations(CamelModel):
    airtable: IntegrationStatus = Field(default_factory=IntegrationStatus)
    webhook: IntegrationStatus = Field(default_factory=IntegrationStatus)
    keap_goal: KeapGoalStatus = Field(default_factory=KeapGoalStatus)


class BillingDateResponse(CamelModel):
    success: bool
    contact_id: str
    original_date: str  # YYYY-MM-DD
    delay: DelayInfo
    calculated_date: str  # YYYY-MM-DD
    day_of_month: int
    message: str
    integrations: BillingIntegrations


# =============================================================================
# TIME TO LEAVE
# =============================================================================


class TimeToLeaveResponse(CamelModel):
    status: str  # "processed", "skipped" or "ignored"
    task_id: str | None = None
    reason: str | None = None
    travel_minutes: int | None = None
    matched_keyword: str | None = None
    start_time: str | None = None
    leave_time: str | None = None
    strategy: str | None = None
    integrations: dict[str, dict[str, Any]] | None = None
