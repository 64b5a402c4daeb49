"""
Value types for billing date calculation.
"""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class DelaySpec:
    """Offset applied to a start date before the billing rule runs."""

    days: int = 0
    months: int = 0


@dataclass
class BillingDateResult:
    """Outcome of one billing date calculation."""

    original_date: date
    delay: DelaySpec
    calculated_date: date
    day_of_month: int
    delay_text: str = "none"  # raw delay input as received
