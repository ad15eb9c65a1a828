"""Authentication adapter and route guard tests."""

from __future__ import annotations

import unittest

import httpx
from fastapi.testclient import TestClient

from scribe_gateway.adapters.auth import (
    AuthVerificationError,
    MockTokenVerifier,
    SessionTokenVerifier,
    TokenVerifier,
)
from scribe_gateway.core.config import get_settings
from scribe_gateway.main import create_app
from scribe_gateway.schemas.auth import AuthPrincipal, Role

from settings_env import SettingsEnvCase
from stub_backend import create_stub_backend
from stub_store import InMemoryBackendStore

_SECRET = "unit-test-session-secret"


class TokenVerifierInterfaceTests(unittest.TestCase):
    def test_verifier_must_also_issue_tokens(self) -> None:
        class _VerifyOnly(TokenVerifier):
            def verify_token(self, token: str) -> AuthPrincipal:
                return AuthPrincipal(user_id=token, display_name=token, credential=token)

        with self.assertRaises(TypeError):
            _VerifyOnly()
        self.assertIsInstance(MockTokenVerifier(), TokenVerifier)
        self.assertIsInstance(SessionTokenVerifier(_SECRET, ttl_seconds=60), TokenVerifier)


class MockTokenVerifierTests(unittest.TestCase):
    def test_accepts_user_and_admin_tokens(self) -> None:
        verifier = MockTokenVerifier()

        user = verifier.verify_token("test:alice")
        admin = verifier.verify_token("test:root:admin")

        self.assertEqual(user.user_id, "alice")
        self.assertEqual(user.role, Role.USER)
        self.assertEqual(user.credential, "test:alice")
        self.assertTrue(admin.is_admin)

    def test_rejects_malformed_tokens(self) -> None:
        verifier = MockTokenVerifier()
        for token in ("alice", "test:", "test:alice:owner", "prod:alice:admin"):
            with self.subTest(token=token):
                with self.assertRaises(AuthVerificationError):
                    verifier.verify_token(token)


class SessionTokenVerifierTests(unittest.TestCase):
    def setUp(self) -> None:
        self.now = 1_000_000.0
        self.verifier = SessionTokenVerifier(_SECRET, ttl_seconds=60, clock=lambda: self.now)
        self.principal = AuthPrincipal(
            user_id="7",
            display_name="alice",
            role=Role.ADMIN,
            credential="backend-token-7",
        )

    def test_issued_token_verifies_to_same_principal(self) -> None:
        token = self.verifier.issue_token(self.principal)

        verified = self.verifier.verify_token(token)

        self.assertTrue(token.startswith("sgw1."))
        self.assertEqual(verified.user_id, "7")
        self.assertEqual(verified.display_name, "alice")
        self.assertTrue(verified.is_admin)
        self.assertEqual(verified.credential, "backend-token-7")

    def test_credential_is_not_part_of_repr(self) -> None:
        self.assertNotIn("backend-token-7", repr(self.principal))

    def test_expired_token_is_rejected(self) -> None:
        token = self.verifier.issue_token(self.principal)
        self.now += 61

        with self.assertRaises(AuthVerificationError) as context:
            self.verifier.verify_token(token)
        self.assertEqual(str(context.exception), "Session expired")

    def test_tampered_or_foreign_tokens_are_rejected(self) -> None:
        token = self.verifier.issue_token(self.principal)
        prefix, payload, signature = token.split(".")
        foreign = SessionTokenVerifier("another-secret", ttl_seconds=60, clock=lambda: self.now)

        candidates = [
            f"{prefix}.{payload}x.{signature}",
            f"{prefix}.{payload}.{signature[:-2]}",
            foreign.issue_token(self.principal),
            "test:alice:admin",
        ]
        for candidate in candidates:
            with self.subTest(candidate=candidate):
                with self.assertRaises(AuthVerificationError):
                    self.verifier.verify_token(candidate)

    def test_empty_secret_is_refused(self) -> None:
        with self.assertRaises(ValueError):
            SessionTokenVerifier("", ttl_seconds=60)


class RouteGuardTests(SettingsEnvCase):
    env = {
        "SCRIBE_GATEWAY_BACKEND_URL": "http://backend.test",
        "SCRIBE_GATEWAY_AUTH_PROVIDER": "session",
        "SCRIBE_GATEWAY_SESSION_SECRET": _SECRET,
    }

    def setUp(self) -> None:
        super().setUp()
        self.store = InMemoryBackendStore()
        self.store.create_user("alice", "wonderland")
        self.client = TestClient(create_app(backend_transport=httpx.ASGITransport(app=create_stub_backend(self.store))))

    def test_missing_token_is_rejected_without_backend_call(self) -> None:
        for method, path in (
            ("GET", "/api/transcriptions"),
            ("GET", "/api/admin/users"),
            ("GET", "/api/download/word/7"),
            ("DELETE", "/api/admin/transcriptions?id=1"),
        ):
            with self.subTest(path=path):
                response = self.client.request(method, path)
                self.assertEqual(response.status_code, 401)
                self.assertEqual(response.json(), {"error": "Not authenticated"})
        self.assertEqual(self.store.request_log, [])

    def test_invalid_and_expired_tokens_are_rejected(self) -> None:
        stale = SessionTokenVerifier(_SECRET, ttl_seconds=60, clock=lambda: 0.0).issue_token(
            AuthPrincipal(user_id="1", display_name="alice", role=Role.USER, credential="x")
        )

        invalid = self.client.get("/api/transcriptions", headers={"Authorization": "Bearer garbage"})
        expired = self.client.get("/api/transcriptions", headers={"Authorization": f"Bearer {stale}"})

        self.assertEqual(invalid.status_code, 401)
        self.assertEqual(invalid.json(), {"error": "Invalid bearer token"})
        self.assertEqual(expired.status_code, 401)
        self.assertEqual(expired.json(), {"error": "Session expired"})
        self.assertEqual(self.store.request_log, [])

    def test_login_issues_session_token_usable_for_later_calls(self) -> None:
        login = self.client.post("/api/login", json={"username": "alice", "password": "wonderland"})

        self.assertEqual(login.status_code, 200)
        body = login.json()
        self.assertEqual(body["token_type"], "bearer")
        self.assertEqual(body["display_name"], "alice")
        self.assertFalse(body["is_admin"])

        listing = self.client.get("/api/transcriptions", headers={"Authorization": f"Bearer {body['access_token']}"})
        self.assertEqual(listing.status_code, 200)
        self.assertEqual(listing.json(), [])

    def test_login_requires_both_fields_before_contacting_backend(self) -> None:
        for payload in ({}, {"username": "alice"}, {"username": "  ", "password": "x"}):
            with self.subTest(payload=payload):
                response = self.client.post("/api/login", json=payload)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json(), {"error": "Username and password are required"})
        self.assertEqual(self.store.request_log, [])

    def test_bad_credentials_are_relayed_from_backend(self) -> None:
        response = self.client.post("/api/login", json={"username": "alice", "password": "nope"})

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"error": "Bad username or password"})


class SettingsValidationTests(SettingsEnvCase):
    env = {
        "SCRIBE_GATEWAY_BACKEND_URL": "http://backend.test/",
        "SCRIBE_GATEWAY_AUTH_PROVIDER": "session",
        "SCRIBE_GATEWAY_SESSION_SECRET": "",
    }

    def test_session_provider_requires_secret(self) -> None:
        with self.assertRaises(ValueError):
            get_settings()
