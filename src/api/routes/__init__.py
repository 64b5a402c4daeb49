"""API route modules."""

from .billing import router as billing_router
from .clickup import router as clickup_router
from .goals import router as goals_router
from .health import router as health_router
from .oauth import router as oauth_router

__all__ = ["billing_router", "clickup_router", "goals_router", "health_router", "oauth_router"]
