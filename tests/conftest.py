"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import httpx
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class FakeClock:
    """Settable replacement for time.time."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def mock_client(handler) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by ``handler(request)``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sample_task():
    """ClickUp task tagged as an appointment."""
    return {
        "id": "abc123",
        "name": "Dentist checkup",
        "description": "Bring insurance card",
        "tags": [{"name": "Appointment"}, {"name": "personal"}],
        "start_date": "1718445600000",  # 2024-06-15T10:00:00Z
        "list": {"id": "901"},
        "custom_fields": [
            {"id": "fld-leave", "name": "Leave Time", "type": "date", "value": None},
        ],
    }


@pytest.fixture
def campaigns_payload():
    """Keap /campaigns response with two goals."""
    return {
        "campaigns": [
            {"id": 10, "name": "Onboarding", "goals": []},
            {
                "id": 20,
                "name": "Billing",
                "goals": [
                    {
                        "id": 201,
                        "name": "Billing scheduled",
                        "call_name": "billing_calculator_success",
                        "integration": "billing-date-calculator",
                    },
                    {
                        "id": 202,
                        "name": "Billing failed",
                        "call_name": "billing_calculator_error",
                        "integration": "billing-date-calculator",
                    },
                ],
            },
        ]
    }
