"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from api.models.responses import HealthResponse
from core.config import API_VERSION

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint for monitoring.

    Reports which integrations this service has credentials for.
    """
    features = getattr(request.app.state, "features", None)
    return HealthResponse(
        status="healthy",
        service=request.app.title,
        version=API_VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        integrations=features() if callable(features) else {},
    )
