"""Session service layer."""

import logging

from pydantic import ValidationError

from scribe_gateway.adapters.auth import TokenVerifier
from scribe_gateway.adapters.backend import BackendClient, unwrap
from scribe_gateway.core.logging_safety import safe_log_identifier
from scribe_gateway.errors import BadRequest, TransportFailure
from scribe_gateway.schemas.auth import AuthPrincipal, LoginResponse, Role

logger = logging.getLogger(__name__)


class SessionService:
    def __init__(self, backend: BackendClient, verifier: TokenVerifier) -> None:
        self._backend = backend
        self._verifier = verifier

    async def login(self, *, username: str | None, password: str | None) -> LoginResponse:
        username = (username or "").strip()
        if not username or not password:
            raise BadRequest("Username and password are required")

        data = unwrap(await self._backend.login(username=username, password=password))
        if not isinstance(data, dict) or not data.get("access_token"):
            logger.warning("login.invalid_backend_payload principal_id=%s", safe_log_identifier(username, prefix="pid"))
            raise TransportFailure("Invalid response from backend")

        try:
            principal = AuthPrincipal(
                user_id=str(data.get("user_id") or username),
                display_name=username,
                role=Role.ADMIN if data.get("is_admin") else Role.USER,
                credential=str(data["access_token"]),
            )
        except ValidationError as exc:
            raise TransportFailure("Invalid response from backend") from exc

        logger.info(
            "login.accepted principal_id=%s role=%s",
            safe_log_identifier(principal.user_id, prefix="pid"),
            principal.role.value,
        )
        return LoginResponse(
            access_token=self._verifier.issue_token(principal),
            user_id=principal.user_id,
            display_name=principal.display_name,
            is_admin=principal.is_admin,
        )
