"""
Configuration constants and environment setup.
"""

import json
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
REQUEST_LOG_DB_PATH = Path(
    os.environ.get("REQUEST_LOG_DB_PATH", PROJECT_ROOT / "data" / "db" / "requests.db")
)
REQUEST_LOG_ENABLED = os.environ.get("REQUEST_LOG_ENABLED", "false").lower() == "true"

# =============================================================================
# API CONFIGURATION
# =============================================================================

SERVICE_API_KEY = os.environ.get("SERVICE_API_KEY", "")
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
HTTP_TIMEOUT_SECONDS = float(os.environ.get("HTTP_TIMEOUT_SECONDS", "30"))
API_VERSION = "1.0.0"

# =============================================================================
# KEAP OAUTH (from environment)
# =============================================================================

KEAP_CLIENT_ID = os.environ.get("KEAP_CLIENT_ID", "")
KEAP_CLIENT_SECRET = os.environ.get("KEAP_CLIENT_SECRET", "")
KEAP_REDIRECT_URI = os.environ.get("KEAP_REDIRECT_URI", "")
KEAP_ACCESS_TOKEN = os.environ.get("KEAP_ACCESS_TOKEN") or None
KEAP_REFRESH_TOKEN = os.environ.get("KEAP_REFRESH_TOKEN") or None
# Epoch millis; unknown expiry means the token is used until a 401 comes back
KEAP_TOKEN_EXPIRES_AT = (
    int(os.environ["KEAP_TOKEN_EXPIRES_AT"]) if os.environ.get("KEAP_TOKEN_EXPIRES_AT") else None
)
KEAP_API_TOKEN = os.environ.get("KEAP_API_TOKEN") or None  # legacy static key

KEAP_API_BASE_URL = os.environ.get(
    "KEAP_API_BASE_URL", "https://api.infusionsoft.com/crm/rest/v1"
)
KEAP_TOKEN_URL = os.environ.get("KEAP_TOKEN_URL", "https://api.infusionsoft.com/token")
KEAP_AUTHORIZE_URL = os.environ.get(
    "KEAP_AUTHORIZE_URL", "https://signin.infusionsoft.com/app/oauth/authorize"
)

# Refresh this long before the vendor-reported expiry
TOKEN_REFRESH_MARGIN_MS = 5 * 60 * 1000

# =============================================================================
# GOAL CONFIGURATION
# =============================================================================

KEAP_SUCCESS_GOAL_ID = os.environ.get("KEAP_SUCCESS_GOAL_ID") or None
KEAP_ERROR_GOAL_ID = os.environ.get("KEAP_ERROR_GOAL_ID") or None
GOAL_INTEGRATION = os.environ.get("GOAL_INTEGRATION", "billing-date-calculator")
GOAL_DISCOVERY_TIMEOUT_SECONDS = float(os.environ.get("GOAL_DISCOVERY_TIMEOUT_SECONDS", "8"))

# =============================================================================
# REPORTING INTEGRATIONS
# =============================================================================

AIRTABLE_API_KEY = os.environ.get("AIRTABLE_API_KEY", "")
AIRTABLE_BASE_ID = os.environ.get("AIRTABLE_BASE_ID", "")
AIRTABLE_TABLE_NAME = os.environ.get("AIRTABLE_TABLE_NAME", "Script Results")
AIRTABLE_API_URL = "https://api.airtable.com/v0"
AIRTABLE_SCRIPT_NAME = "Billing Date Calculator"

WEBHOOK_URL = os.environ.get("WEBHOOK_URL", "")
WEBHOOK_SOURCE = "billing-date-calculator"

# =============================================================================
# CLICKUP / PUSHCUT (time-to-leave service)
# =============================================================================

CLICKUP_API_TOKEN = os.environ.get("CLICKUP_API_TOKEN", "")
CLICKUP_API_URL = "https://api.clickup.com/api/v2"
CLICKUP_WEBHOOK_SECRET = os.environ.get("CLICKUP_WEBHOOK_SECRET", "")
CLICKUP_LEAVE_TIME_FIELD_ID = os.environ.get("CLICKUP_LEAVE_TIME_FIELD_ID", "")
CLICKUP_LEAVE_STRATEGY = os.environ.get(
    "CLICKUP_LEAVE_STRATEGY", "field" if CLICKUP_LEAVE_TIME_FIELD_ID else "subtask"
).lower()
APPOINTMENT_TAG = os.environ.get("APPOINTMENT_TAG", "appointment").lower()
# Timezone used when rendering times in notifications and subtask names
DISPLAY_TIMEZONE = os.environ.get("DISPLAY_TIMEZONE", "UTC")

PUSHCUT_API_KEY = os.environ.get("PUSHCUT_API_KEY", "")
PUSHCUT_API_URL = "https://api.pushcut.io/v1"
PUSHCUT_NOTIFICATION_NAME = os.environ.get("PUSHCUT_NOTIFICATION_NAME", "Time to Leave")

# =============================================================================
# TRAVEL TIMES
# =============================================================================

DEFAULT_TRAVEL_MINUTES = int(os.environ.get("DEFAULT_TRAVEL_MINUTES", "60"))

# Keyword -> minutes. Checked in this order; the first keyword found wins.
DEFAULT_TRAVEL_TIMES = {
    "mosque": 45,
    "office": 30,
    "doctor": 20,
    "quran": 45,
    "qur'an": 45,
    "quran class": 45,
    "islamic": 45,
    "masjid": 45,
    "prayer": 45,
    "salah": 45,
    "appointment": 30,
    "meeting": 30,
    "dentist": 20,
    "medical": 20,
    "hospital": 30,
    "clinic": 20,
}

TRAVEL_TIMES: dict[str, int] = (
    {k.lower(): int(v) for k, v in json.loads(os.environ["TRAVEL_TIMES_JSON"]).items()}
    if os.environ.get("TRAVEL_TIMES_JSON")
    else dict(DEFAULT_TRAVEL_TIMES)
)
