"""FastAPI application entry point for the ClickUp time-to-leave service."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.errors import register_exception_handlers
from api.routes import clickup_router, health_router
from core.config import (
    API_DEBUG,
    API_VERSION,
    CLICKUP_API_TOKEN,
    CLICKUP_LEAVE_STRATEGY,
    CLICKUP_WEBHOOK_SECRET,
    LOG_LEVEL,
    PUSHCUT_API_KEY,
)
from core.http_client import close_http_client

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def travel_features() -> dict[str, bool]:
    return {
        "clickup": bool(CLICKUP_API_TOKEN),
        "webhook_signature": bool(CLICKUP_WEBHOOK_SECRET),
        "pushcut": bool(PUSHCUT_API_KEY),
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    logger.info(f"Time-to-leave service starting (write-back strategy: {CLICKUP_LEAVE_STRATEGY})")
    for name, enabled in travel_features().items():
        logger.info(f"  - {name}: {'enabled' if enabled else 'disabled'}")

    yield

    await close_http_client()


app = FastAPI(
    title="ClickUp Time to Leave",
    description="Computes when to leave for ClickUp appointments from keyword travel times",
    version=API_VERSION,
    debug=API_DEBUG,
    lifespan=lifespan,
)
app.state.features = travel_features

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(clickup_router)


if __name__ == "__main__":
    import uvicorn

    from core.config import API_HOST, API_PORT

    uvicorn.run(
        "api.travel_main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_DEBUG,
    )
