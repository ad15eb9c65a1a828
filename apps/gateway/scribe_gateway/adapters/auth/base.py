"""Authentication provider interfaces."""

from abc import ABC, abstractmethod

from scribe_gateway.schemas.auth import AuthPrincipal


class AuthVerificationError(Exception):
    """Raised when a token is absent, malformed, or cannot be verified."""


class TokenVerifier(ABC):
    """Provider-neutral session token verification interface."""

    @abstractmethod
    def verify_token(self, token: str) -> AuthPrincipal:
        """Verify token and return normalized principal."""

    @abstractmethod
    def issue_token(self, principal: AuthPrincipal) -> str:
        """Mint a session token for a principal authenticated by the backend."""


__all__ = ["AuthVerificationError", "TokenVerifier"]
