"""
Billing date calculation.

Bills land on the 15th or the 27th of a month, always strictly after the
(delayed) start date. A start date that is itself the 15th or 27th moves on to
the next slot.
"""

import re
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from models.billing import BillingDateResult, DelaySpec

BILLING_DAYS = (15, 27)

_DAYS_PATTERN = re.compile(r"([0-9]+)\s*days?", re.IGNORECASE)
_MONTHS_PATTERN = re.compile(r"([0-9]+)\s*months?", re.IGNORECASE)


# =============================================================================
# DELAY PARSING
# =============================================================================


def parse_delay(delay_text: str | None) -> DelaySpec:
    """
    Parse a free-text delay such as "5 days 2 months" or "1 month".

    Days and months are matched independently, in any order. Parsing is
    permissive: missing, empty or unrecognised text yields a zero delay
    rather than an error.
    """
    if not delay_text:
        return DelaySpec()

    day_match = _DAYS_PATTERN.search(delay_text)
    month_match = _MONTHS_PATTERN.search(delay_text)

    return DelaySpec(
        days=int(day_match.group(1)) if day_match else 0,
        months=int(month_match.group(1)) if month_match else 0,
    )


# =============================================================================
# DATE ARITHMETIC
# =============================================================================


def add_delay(start: date, delay: DelaySpec) -> date:
    """
    Apply days first, then calendar months.

    Month addition clamps to the end of the target month, so Jan 31 + 1 month
    is Feb 28 (Feb 29 in leap years).
    """
    shifted = start + timedelta(days=delay.days)
    return shifted + relativedelta(months=delay.months)


def find_next_target_date(start: date, delay: DelaySpec | None = None) -> date:
    """Return the first billing day strictly after ``start`` plus ``delay``."""
    current = add_delay(start, delay or DelaySpec())

    for day in BILLING_DAYS:
        candidate = current.replace(day=day)
        if candidate > current:
            return candidate

    next_month = current.replace(day=1) + relativedelta(months=1)
    return next_month.replace(day=BILLING_DAYS[0])


def calculate_billing_date(start: date, delay_text: str | None) -> BillingDateResult:
    """Parse the delay and compute the billing date for one request."""
    delay = parse_delay(delay_text)
    calculated = find_next_target_date(start, delay)
    return BillingDateResult(
        original_date=start,
        delay=delay,
        calculated_date=calculated,
        day_of_month=calculated.day,
        delay_text=delay_text or "none",
    )
