"""FastAPI application entrypoint."""

from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from scribe_gateway.adapters.backend import BackendClient
from scribe_gateway.core.config import get_settings
from scribe_gateway.core.logging_safety import safe_log_identifier
from scribe_gateway.errors import GatewayError, InternalError
from scribe_gateway.routes import (
    auth_router,
    downloads_router,
    monitoring_router,
    prompts_router,
    transcriptions_router,
    users_router,
)
from scribe_gateway.routes.dependencies import request_correlation_id
from scribe_gateway.schemas.error import ErrorResponse

logger = logging.getLogger(__name__)

_GENERIC_ERROR_MESSAGE = "An unexpected error occurred"


def _validation_message(exc: RequestValidationError) -> str:
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "form")]
        if location:
            return f"Invalid request field: {'.'.join(location)}"
    return "Invalid request payload"


def create_app(*, backend_transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Scribe Gateway", version="1.0.0")
    app.state.backend = BackendClient.from_settings(settings, transport=backend_transport)

    @app.exception_handler(GatewayError)
    async def handle_gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning(
                "gateway.failed correlation_id=%s method=%s path=%s code=%s status=%s",
                safe_log_identifier(request_correlation_id(request), prefix="cid"),
                request.method,
                request.url.path,
                exc.code,
                exc.status_code,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.payload.model_dump())

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("gateway.validation_failed method=%s path=%s", request.method, request.url.path)
        payload = ErrorResponse(error=_validation_message(exc))
        return JSONResponse(status_code=400, content=payload.model_dump())

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "gateway.unhandled correlation_id=%s method=%s path=%s",
            safe_log_identifier(request_correlation_id(request), prefix="cid"),
            request.method,
            request.url.path,
        )
        payload = InternalError(_GENERIC_ERROR_MESSAGE).payload
        return JSONResponse(status_code=500, content=payload.model_dump())

    api_prefix = settings.api_prefix
    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(users_router, prefix=api_prefix)
    app.include_router(prompts_router, prefix=api_prefix)
    app.include_router(transcriptions_router, prefix=api_prefix)
    app.include_router(monitoring_router, prefix=api_prefix)
    app.include_router(downloads_router, prefix=api_prefix)

    return app
