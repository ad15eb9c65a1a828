"""Auth verifier adapters."""

from .base import AuthVerificationError, TokenVerifier
from .mock_auth import MockTokenVerifier
from .session_token import SessionTokenVerifier

__all__ = [
    "AuthVerificationError",
    "TokenVerifier",
    "MockTokenVerifier",
    "SessionTokenVerifier",
]
