#!/usr/bin/env python3
"""
List Keap campaign goals, or resolve one call name, using configured credentials.

Usage:
    uv run python src/scripts/discover_goals.py
    uv run python src/scripts/discover_goals.py --call-name billing_calculator_success
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import GOAL_INTEGRATION
from core.exceptions import IntegrationError
from core.http_client import close_http_client, get_http_client
from services.goals import GoalDispatcher
from services.keap import KeapClient
from services.tokens import build_token_store


async def main(call_name: str | None, integration: str) -> int:
    keap = KeapClient(build_token_store(get_http_client()))

    try:
        if call_name:
            discovery = await GoalDispatcher(keap).discover_goal(call_name, integration)
            print(f"Goal ID:   {discovery.goal_id}")
            print(f"Goal name: {discovery.goal_name}")
            print(f"Campaign:  {discovery.campaign_name} ({discovery.campaign_id})")
            return 0

        print("Fetching campaigns from Keap...\n")
        campaigns = await keap.list_campaigns()
        print(f"Found {len(campaigns)} campaigns\n")
        print("=" * 80)

        for campaign in campaigns:
            print(f"\nCampaign: {campaign.get('name')} ({campaign.get('id')})")
            goals = campaign.get("goals") or []
            if not goals:
                print("  Goals: None")
            for goal in goals:
                print(f"    - {goal.get('name')} (ID {goal.get('id')})")
                print(f"      call_name: {goal.get('call_name')}")
                print(f"      integration: {goal.get('integration')}")
            print("-" * 80)
        return 0

    except IntegrationError as e:
        print(f"\nError: {e}")
        return 1
    finally:
        await close_http_client()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="List or resolve Keap campaign goals")
    parser.add_argument("--call-name", help="Resolve this call name to a goal id")
    parser.add_argument("--integration", default=GOAL_INTEGRATION)
    args = parser.parse_args()

    sys.exit(asyncio.run(main(args.call_name, args.integration)))
