"""
Goal dispatch configuration and outcome types.
"""

from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class GoalConfig:
    """Per-request goal settings; anything left unset falls back to the environment."""

    success_call_name: str | None = None
    error_call_name: str | None = None
    integration: str | None = None
    success_goal_id: str | None = None
    error_goal_id: str | None = None


@dataclass
class GoalDiscovery:
    """A goal located by searching campaigns for a call name."""

    goal_id: int | str
    campaign_id: int | str | None
    campaign_name: str | None
    goal_name: str
    discovery_method: str = "api_search"


@dataclass
class GoalResult:
    """What happened when a goal was dispatched. Never raised, always returned."""

    attempted: bool = False
    success: bool = False
    goal_type: str = "success"
    method: str = "unknown"
    source: str = "unknown"
    call_name: str | None = None
    integration: str | None = None
    goal_id: int | str | None = None
    goal_discovery: GoalDiscovery | None = None
    discovery_error: str | None = None
    error_detail: str | None = None
    response: Any = None
    error: str | None = None
    reason: str | None = None
    skipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Plain dict without unset fields."""
        return {k: v for k, v in asdict(self).items() if v is not None}
