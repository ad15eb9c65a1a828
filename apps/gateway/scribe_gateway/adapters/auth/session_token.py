"""Signed session tokens minted by the gateway after a backend login."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
from collections.abc import Callable
from secrets import compare_digest

from pydantic import ValidationError

from scribe_gateway.adapters.auth.base import AuthVerificationError, TokenVerifier
from scribe_gateway.schemas.auth import AuthPrincipal, Role

_TOKEN_PREFIX = "sgw1"


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(text + padding)


class SessionTokenVerifier(TokenVerifier):
    """Issues and verifies ``sgw1.<payload>.<signature>`` tokens.

    The payload carries the principal, including the backend credential, and an
    ``exp`` timestamp. Signatures are HMAC-SHA256 over the encoded payload.
    """

    def __init__(self, secret: str, ttl_seconds: int, clock: Callable[[], float] = time.time) -> None:
        if not secret:
            raise ValueError("session secret must not be empty")
        self._key = secret.encode("utf-8")
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    def _sign(self, encoded_payload: str) -> str:
        mac = hmac.new(self._key, f"{_TOKEN_PREFIX}.{encoded_payload}".encode("ascii"), hashlib.sha256)
        return _b64encode(mac.digest())

    def issue_token(self, principal: AuthPrincipal) -> str:
        payload = {
            "sub": principal.user_id,
            "name": principal.display_name,
            "role": principal.role.value,
            "cred": principal.credential,
            "exp": int(self._clock()) + self._ttl_seconds,
        }
        encoded = _b64encode(json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8"))
        return f"{_TOKEN_PREFIX}.{encoded}.{self._sign(encoded)}"

    def verify_token(self, token: str) -> AuthPrincipal:
        parts = token.split(".")
        if len(parts) != 3 or parts[0] != _TOKEN_PREFIX:
            raise AuthVerificationError("Invalid bearer token")

        _, encoded, signature = parts
        if not compare_digest(signature, self._sign(encoded)):
            raise AuthVerificationError("Invalid bearer token")

        try:
            payload = json.loads(_b64decode(encoded))
        except (ValueError, UnicodeDecodeError) as exc:
            raise AuthVerificationError("Invalid bearer token") from exc
        if not isinstance(payload, dict):
            raise AuthVerificationError("Invalid bearer token")

        expires_at = payload.get("exp")
        if not isinstance(expires_at, int) or expires_at <= self._clock():
            raise AuthVerificationError("Session expired")

        try:
            return AuthPrincipal(
                user_id=payload.get("sub") or "",
                display_name=payload.get("name") or payload.get("sub") or "",
                role=Role(payload.get("role")),
                credential=payload.get("cred") or "",
            )
        except (ValueError, ValidationError) as exc:
            raise AuthVerificationError("Bearer token missing user identity") from exc


__all__ = ["SessionTokenVerifier"]
