"""Exception handlers shared by both services."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models.responses import ErrorCodes, ErrorResponse

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error in the standard {error, code, details} shape."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if isinstance(exc.detail, dict):
            content = exc.detail
        else:
            content = ErrorResponse(
                error=str(exc.detail),
                code=ErrorCodes.INVALID_REQUEST if exc.status_code < 500 else ErrorCodes.INTERNAL_ERROR,
            ).model_dump(exclude_none=True)
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error="Invalid request body",
                code=ErrorCodes.VALIDATION_ERROR,
                details=details,
            ).model_dump(exclude_none=True),
        )

    # Global exception handler for unexpected errors
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="Internal server error",
                code=ErrorCodes.INTERNAL_ERROR,
                details=[],
            ).model_dump(exclude_none=True),
        )
