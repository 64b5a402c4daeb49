"""Pydantic request models for API endpoints."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from api.models.responses import CamelModel

BILLING_EXAMPLE = {
    "contactId": "12345",
    "date": "2024-01-10",
    "delay": "5 days 2 months",
    "successCallName": "billing_calculator_success",
    "errorCallName": "billing_calculator_error",
}

GOAL_DISCOVER_EXAMPLE = {
    "callName": "billing_calculator_success",
    "integration": "billing-date-calculator",
}


class BillingDateRequest(CamelModel):
    """
    Body of POST /calculate-billing-date.

    contactId and date are optional here so that missing values produce a
    400 with an example payload rather than a generic validation error.
    """

    contact_id: str | int | None = None
    date: str | None = None
    delay: str | None = None
    skip_webhook: bool = False
    skip_airtable: bool = False
    skip_keap_goals: bool = False

    # Trigger by call name (preferred)
    success_call_name: str | None = None
    error_call_name: str | None = None
    integration: str | None = None

    # Trigger by numeric goal id (fallback)
    keap_success_goal_id: str | int | None = None
    keap_error_goal_id: str | int | None = None


class GoalDiscoverRequest(CamelModel):
    call_name: str | None = None
    integration: str | None = None


class GoalTestRequest(CamelModel):
    contact_id: str | int | None = None
    test_success: bool = True
    success_call_name: str | None = None
    error_call_name: str | None = None
    integration: str | None = None
    keap_success_goal_id: str | int | None = None
    keap_error_goal_id: str | int | None = None


# =============================================================================
# CLICKUP WEBHOOK
# =============================================================================


class HistoryItem(BaseModel):
    """One field change reported by ClickUp."""

    field: str
    before: Any = None
    after: Any = None


class TaskUpdatedEvent(BaseModel):
    event: Literal["taskUpdated"]
    task_id: str
    webhook_id: str | None = None
    history_items: list[HistoryItem] = []

    def start_date_change(self) -> HistoryItem | None:
        for item in self.history_items:
            if item.field == "start_date":
                return item
        return None


class TaskCreatedEvent(BaseModel):
    event: Literal["taskCreated"]
    task_id: str
    webhook_id: str | None = None


# The only payload shapes accepted on /clickup-webhook, tagged by "event"
ClickUpWebhookEvent = Annotated[
    Union[TaskUpdatedEvent, TaskCreatedEvent], Field(discriminator="event")
]
