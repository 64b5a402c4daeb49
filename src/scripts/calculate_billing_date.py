#!/usr/bin/env python3
"""
Calculate a billing date from the command line, without any integrations.

Usage:
    uv run python src/scripts/calculate_billing_date.py --date 2024-01-10 --delay "5 days 2 months"
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from services.billing_dates import add_delay, calculate_billing_date


def main():
    parser = argparse.ArgumentParser(description="Calculate the next 15th/27th billing date")
    parser.add_argument("--date", required=True, help="Start date (YYYY-MM-DD)")
    parser.add_argument("--delay", default="", help='Delay text, e.g. "5 days 2 months"')

    args = parser.parse_args()

    try:
        start = datetime.strptime(args.date, "%Y-%m-%d").date()
    except ValueError:
        print(f"\nError: invalid date '{args.date}', expected YYYY-MM-DD")
        sys.exit(1)

    result = calculate_billing_date(start, args.delay)
    print(f"Start date:    {result.original_date.isoformat()}")
    print(f"Delay:         {result.delay.days} days, {result.delay.months} months")
    print(f"Adjusted date: {add_delay(start, result.delay).isoformat()}")
    print(f"Billing date:  {result.calculated_date.isoformat()} (day {result.day_of_month})")


if __name__ == "__main__":
    main()
