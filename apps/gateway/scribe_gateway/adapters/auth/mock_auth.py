"""Mock auth verifier for local development and tests."""

from scribe_gateway.adapters.auth.base import AuthVerificationError, TokenVerifier
from scribe_gateway.schemas.auth import AuthPrincipal, Role


class MockTokenVerifier(TokenVerifier):
    """Accepts deterministic test tokens only.

    Expected token format:
    - ``test:<user_id>``
    - ``test:<user_id>:<role>`` where role is ``user`` or ``admin``

    The raw token is forwarded to the backend as the principal's credential.
    """

    def verify_token(self, token: str) -> AuthPrincipal:
        parts = token.split(":")
        if len(parts) not in (2, 3) or parts[0] != "test":
            raise AuthVerificationError("Invalid bearer token")

        user_id = parts[1].strip()
        role = parts[2].strip() if len(parts) == 3 else Role.USER.value

        if not user_id:
            raise AuthVerificationError("Bearer token missing user identity")
        try:
            resolved_role = Role(role)
        except ValueError as exc:
            raise AuthVerificationError("Bearer token has unknown role") from exc

        return AuthPrincipal(user_id=user_id, display_name=user_id, role=resolved_role, credential=token)

    def issue_token(self, principal: AuthPrincipal) -> str:
        return f"test:{principal.user_id}:{principal.role.value}"


__all__ = ["MockTokenVerifier"]
