"""Dependency wiring for routes."""

from __future__ import annotations

import logging
from typing import Annotated
from uuid import uuid4

from fastapi import Depends, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from scribe_gateway.adapters.auth import (
    AuthVerificationError,
    MockTokenVerifier,
    SessionTokenVerifier,
    TokenVerifier,
)
from scribe_gateway.adapters.backend import BackendClient
from scribe_gateway.core.config import Settings, get_settings
from scribe_gateway.core.logging_safety import safe_log_identifier
from scribe_gateway.errors import Forbidden, Unauthenticated
from scribe_gateway.schemas.auth import AuthPrincipal
from scribe_gateway.schemas.prompt import PromptFamily
from scribe_gateway.services.downloads import DownloadService
from scribe_gateway.services.monitoring import MonitoringService
from scribe_gateway.services.prompts import ActiveResourceSelector
from scribe_gateway.services.sessions import SessionService
from scribe_gateway.services.transcriptions import TranscriptionService
from scribe_gateway.services.users import UserService

bearer_scheme = HTTPBearer(auto_error=False, scheme_name="bearerAuth")
logger = logging.getLogger(__name__)


def request_correlation_id(request: Request) -> str:
    """Correlation id of the request, taken from ``X-Correlation-Id`` or generated once."""
    cached = getattr(request.state, "correlation_id", None)
    if not cached:
        cached = request.headers.get("X-Correlation-Id") or f"req-{uuid4()}"
        request.state.correlation_id = cached
    return cached


def _log_auth_event(level: int, event: str, request: Request, **fields: str) -> None:
    extra = "".join(f" {key}={value}" for key, value in fields.items())
    logger.log(
        level,
        "%s correlation_id=%s method=%s path=%s%s",
        event,
        safe_log_identifier(request_correlation_id(request), prefix="cid"),
        request.method,
        request.url.path,
        extra,
    )


def get_token_verifier(settings: Annotated[Settings, Depends(get_settings)]) -> TokenVerifier:
    if settings.auth_provider == "session":
        return SessionTokenVerifier(secret=settings.session_secret or "", ttl_seconds=settings.session_ttl_seconds)
    return MockTokenVerifier()


async def get_authenticated_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
) -> AuthPrincipal:
    """Resolve the caller's principal or fail with 401.

    Runs before any service code, so nothing reaches the backend for a request
    that carries no valid session.
    """
    token = credentials.credentials if credentials is not None else ""
    if not token or credentials.scheme.lower() != "bearer":
        _log_auth_event(logging.WARNING, "auth.rejected", request, reason="missing_bearer")
        raise Unauthenticated("Not authenticated")

    try:
        principal = verifier.verify_token(token)
    except AuthVerificationError as exc:
        _log_auth_event(logging.WARNING, "auth.rejected", request, reason="verification_failed")
        raise Unauthenticated(str(exc) or "Not authenticated") from exc

    _log_auth_event(
        logging.INFO,
        "auth.accepted",
        request,
        principal_id=safe_log_identifier(principal.user_id, prefix="pid"),
        role=principal.role.value,
    )
    request.state.auth_principal = principal
    return principal


async def require_admin(
    request: Request,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
) -> AuthPrincipal:
    if not principal.is_admin:
        _log_auth_event(
            logging.WARNING,
            "auth.forbidden",
            request,
            principal_id=safe_log_identifier(principal.user_id, prefix="pid"),
        )
        raise Forbidden("Not authorized")
    return principal


def get_backend_client(request: Request) -> BackendClient:
    return request.app.state.backend


def get_session_service(
    backend: Annotated[BackendClient, Depends(get_backend_client)],
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
) -> SessionService:
    return SessionService(backend, verifier)


def get_user_service(backend: Annotated[BackendClient, Depends(get_backend_client)]) -> UserService:
    return UserService(backend)


def get_transcription_service(backend: Annotated[BackendClient, Depends(get_backend_client)]) -> TranscriptionService:
    return TranscriptionService(backend)


def get_download_service(backend: Annotated[BackendClient, Depends(get_backend_client)]) -> DownloadService:
    return DownloadService(backend)


def get_monitoring_service(backend: Annotated[BackendClient, Depends(get_backend_client)]) -> MonitoringService:
    return MonitoringService(backend)


def prompt_selector_dependency(family: PromptFamily):
    """Build a dependency that yields the selector for one prompt family."""

    def get_prompt_selector(
        backend: Annotated[BackendClient, Depends(get_backend_client)],
    ) -> ActiveResourceSelector:
        return ActiveResourceSelector(family, backend)

    return get_prompt_selector
