"""FastAPI application entry point for the billing date service."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.errors import register_exception_handlers
from api.routes import billing_router, goals_router, health_router, oauth_router
from api.routes.billing import billing_features
from core.config import API_DEBUG, API_VERSION, LOG_LEVEL
from core.http_client import close_http_client, get_http_client
from services.tokens import build_token_store

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    app.state.token_store = build_token_store(get_http_client())

    features = billing_features()
    logger.info("Billing Date Calculator starting")
    for name, enabled in features.items():
        logger.info(f"  - {name}: {'enabled' if enabled else 'disabled'}")

    yield

    await close_http_client()


app = FastAPI(
    title="Billing Date Calculator",
    description="Computes the next 15th/27th billing date and reports it to Airtable, "
    "a webhook and Keap campaign goals",
    version=API_VERSION,
    debug=API_DEBUG,
    lifespan=lifespan,
)
app.state.features = billing_features

# CORS middleware (for development)
if API_DEBUG:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

register_exception_handlers(app)

# Include routers
app.include_router(health_router)
app.include_router(billing_router)
app.include_router(oauth_router)
app.include_router(goals_router)


# Entry point for uvicorn
if __name__ == "__main__":
    import uvicorn

    from core.config import API_HOST, API_PORT

    uvicorn.run(
        "api.main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_DEBUG,
    )
