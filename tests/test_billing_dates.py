"""Tests for delay parsing and the 15th/27th billing rule."""

from datetime import date

import pytest

from models.billing import DelaySpec
from services.billing_dates import (
    add_delay,
    calculate_billing_date,
    find_next_target_date,
    parse_delay,
)


class TestParseDelay:
    def test_none_is_zero_delay(self):
        assert parse_delay(None) == DelaySpec(days=0, months=0)

    def test_empty_string_is_zero_delay(self):
        assert parse_delay("") == DelaySpec()

    @pytest.mark.parametrize(
        "text",
        ["5 days 2 months", "2 months 5 days", "2 months and 5 days", "5days, 2months"],
    )
    def test_days_and_months_in_any_order(self, text):
        assert parse_delay(text) == DelaySpec(days=5, months=2)

    def test_singular_and_case_insensitive(self):
        assert parse_delay("1 DAY 1 Month") == DelaySpec(days=1, months=1)

    def test_months_only_leaves_days_zero(self):
        assert parse_delay("3 months") == DelaySpec(days=0, months=3)

    def test_days_only_leaves_months_zero(self):
        assert parse_delay("10 days") == DelaySpec(days=10, months=0)

    def test_unrecognised_text_is_zero_delay(self):
        assert parse_delay("next week sometime") == DelaySpec()

    def test_first_match_wins(self):
        assert parse_delay("3 days then 7 days") == DelaySpec(days=3, months=0)

    def test_only_ascii_digits_count(self):
        assert parse_delay("\u0665 days \u0662 months") == DelaySpec()
        assert parse_delay("\uff15 days") == DelaySpec()


class TestAddDelay:
    def test_days_applied_before_months(self):
        # Jan 30 + 2 days = Feb 1, + 1 month = Mar 1
        assert add_delay(date(2024, 1, 30), DelaySpec(days=2, months=1)) == date(2024, 3, 1)

    def test_month_overflow_clamps_to_month_end(self):
        assert add_delay(date(2024, 1, 31), DelaySpec(months=1)) == date(2024, 2, 29)
        assert add_delay(date(2023, 1, 31), DelaySpec(months=1)) == date(2023, 2, 28)

    def test_months_cross_year(self):
        assert add_delay(date(2024, 11, 20), DelaySpec(months=3)) == date(2025, 2, 20)


class TestFindNextTargetDate:
    def test_before_fifteenth(self):
        assert find_next_target_date(date(2024, 3, 1)) == date(2024, 3, 15)

    def test_fifteenth_moves_to_twenty_seventh(self):
        assert find_next_target_date(date(2024, 3, 15)) == date(2024, 3, 27)

    def test_between_fifteenth_and_twenty_seventh(self):
        assert find_next_target_date(date(2024, 1, 16)) == date(2024, 1, 27)

    def test_twenty_seventh_moves_to_next_month(self):
        assert find_next_target_date(date(2024, 3, 27)) == date(2024, 4, 15)

    @pytest.mark.parametrize("day", [28, 29, 30, 31])
    def test_end_of_month_moves_to_next_fifteenth(self, day):
        assert find_next_target_date(date(2024, 5, day)) == date(2024, 6, 15)

    def test_december_wraps_to_january(self):
        assert find_next_target_date(date(2024, 12, 28)) == date(2025, 1, 15)

    def test_never_returns_its_input(self):
        start = date(2024, 1, 1)
        for offset in range(0, 400, 7):
            day = date.fromordinal(start.toordinal() + offset)
            assert find_next_target_date(day) > day

    def test_reapplying_to_a_result_moves_forward(self):
        first = find_next_target_date(date(2024, 2, 3))
        assert find_next_target_date(first) > first


class TestCalculateBillingDate:
    def test_delay_lands_on_fifteenth(self):
        # Jan 10 + 5 days = Jan 15, + 2 months = Mar 15, which is not after itself
        result = calculate_billing_date(date(2024, 1, 10), "5 days 2 months")
        assert result.calculated_date == date(2024, 3, 27)
        assert result.day_of_month == 27
        assert result.delay == DelaySpec(days=5, months=2)
        assert result.delay_text == "5 days 2 months"

    def test_no_delay(self):
        result = calculate_billing_date(date(2024, 1, 16), "")
        assert result.calculated_date == date(2024, 1, 27)
        assert result.delay_text == "none"

    def test_month_end_start_with_month_delay(self):
        # Jan 31 + 1 month clamps to Feb 29, next slot is Mar 15
        result = calculate_billing_date(date(2024, 1, 31), "1 month")
        assert result.calculated_date == date(2024, 3, 15)
