"""Prompt family and active-version selection tests."""

from __future__ import annotations

import asyncio
import unittest

import httpx
from fastapi.testclient import TestClient

from scribe_gateway.adapters.backend import BackendClient
from scribe_gateway.main import create_app
from scribe_gateway.schemas.auth import AuthPrincipal, Role
from scribe_gateway.schemas.prompt import PromptFamily
from scribe_gateway.services.prompts import ActiveResourceSelector

from settings_env import SettingsEnvCase
from stub_backend import create_stub_backend
from stub_store import InMemoryBackendStore

_ADMIN_TOKEN = "test:root:admin"
_ADMIN_HEADERS = {"Authorization": f"Bearer {_ADMIN_TOKEN}"}


class PromptFamilyTests(unittest.TestCase):
    def test_family_paths_and_labels(self) -> None:
        family = PromptFamily.PROOFREAD

        self.assertEqual(family.collection_path, "/admin/proofread-prompts")
        self.assertEqual(family.active_path, "/admin/settings/active-proofread-prompt")
        self.assertEqual(family.id_field, "proofread_prompt_id")
        self.assertEqual(family.label, "Proofread prompt")


class PromptSelectionRouteTests(SettingsEnvCase):
    env = {
        "SCRIBE_GATEWAY_BACKEND_URL": "http://backend.test",
        "SCRIBE_GATEWAY_AUTH_PROVIDER": "mock",
    }

    def setUp(self) -> None:
        super().setUp()
        self.store = InMemoryBackendStore()
        self.client = TestClient(create_app(backend_transport=httpx.ASGITransport(app=create_stub_backend(self.store))))
        root = self.store.create_user("root", "pw", is_admin=True)
        self.store.tokens[_ADMIN_TOKEN] = root.id

    def _create(self, family: str, version: str, body: str) -> dict:
        response = self.client.post(
            f"/api/admin/{family}-prompts",
            json={"version": version, "prompt": body},
            headers=_ADMIN_HEADERS,
        )
        self.assertEqual(response.status_code, 201)
        return response.json()

    def _active(self, family: str):
        response = self.client.get(f"/api/admin/settings/active-{family}-prompt", headers=_ADMIN_HEADERS)
        self.assertEqual(response.status_code, 200)
        return response.json()

    def _active_ids(self, family: str) -> list[str]:
        listing = self.client.get(f"/api/admin/{family}-prompts", headers=_ADMIN_HEADERS).json()
        return [prompt["id"] for prompt in listing if prompt["is_active"]]

    def test_created_prompt_is_returned_as_sent_and_inactive(self) -> None:
        created = self._create("transcribe", "v1", "Transcribe verbatim.")

        self.assertEqual(created["version"], "v1")
        self.assertEqual(created["prompt"], "Transcribe verbatim.")
        self.assertFalse(created["is_active"])
        self.assertIsNone(self._active("transcribe"))

    def test_create_requires_version_and_body(self) -> None:
        for payload in ({"version": "v1"}, {"prompt": "text"}, {"version": " ", "prompt": "text"}):
            with self.subTest(payload=payload):
                response = self.client.post("/api/admin/system-prompts", json=payload, headers=_ADMIN_HEADERS)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json(), {"error": "Version and prompt are required"})
        self.assertEqual(self.store.request_log, [])

    def test_activation_switches_the_single_active_version(self) -> None:
        first = self._create("transcribe", "v1", "one")
        second = self._create("transcribe", "v2", "two")

        activated = self.client.post(
            "/api/admin/settings/active-transcribe-prompt",
            json={"transcribe_prompt_id": first["id"]},
            headers=_ADMIN_HEADERS,
        )
        self.assertEqual(activated.status_code, 201)
        self.assertEqual(activated.json(), {"message": "Transcribe prompt activated successfully"})
        self.assertEqual(self._active("transcribe")["id"], first["id"])
        self.assertEqual(self._active_ids("transcribe"), [first["id"]])

        self.client.post(
            "/api/admin/settings/active-transcribe-prompt",
            json={"id": second["id"]},
            headers=_ADMIN_HEADERS,
        )
        self.assertEqual(self._active("transcribe")["id"], second["id"])
        self.assertEqual(self._active_ids("transcribe"), [second["id"]])

    def test_unknown_id_leaves_previous_active_version(self) -> None:
        current = self._create("system", "v1", "You are a careful scribe.")
        self.store.set_active_prompt(PromptFamily.SYSTEM, current["id"])
        self.store.request_log.clear()

        response = self.client.post(
            "/api/admin/settings/active-system-prompt",
            json={"system_prompt_id": "999"},
            headers=_ADMIN_HEADERS,
        )

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "System prompt not found"})
        self.assertNotIn(("POST", "/admin/settings/active-system-prompt"), self.store.request_log)
        self.assertEqual(self._active("system")["id"], current["id"])

    def test_missing_id_is_rejected(self) -> None:
        response = self.client.post("/api/admin/settings/active-proofread-prompt", json={}, headers=_ADMIN_HEADERS)

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Proofread prompt id is required"})

    def test_families_are_independent(self) -> None:
        proofread = self._create("proofread", "v1", "Fix punctuation.")
        system = self._create("system", "v1", "Be concise.")
        self.store.set_active_prompt(PromptFamily.PROOFREAD, proofread["id"])

        self.client.post(
            "/api/admin/settings/active-system-prompt",
            json={"system_prompt_id": system["id"]},
            headers=_ADMIN_HEADERS,
        )

        self.assertEqual(self._active("proofread")["id"], proofread["id"])
        self.assertEqual(self._active("system")["id"], system["id"])
        self.assertEqual(self._active_ids("transcribe"), [])


class SelectorPayloadTests(unittest.TestCase):
    principal = AuthPrincipal(user_id="1", display_name="root", role=Role.ADMIN, credential="backend-token")

    def _selector(self, handler) -> ActiveResourceSelector:
        backend = BackendClient("http://backend.test", transport=httpx.MockTransport(handler))
        return ActiveResourceSelector(PromptFamily.TRANSCRIBE, backend)

    def test_more_than_one_active_record_is_reported(self) -> None:
        rows = [
            {"id": 1, "version": "v1", "prompt": "a", "is_active": True},
            {"id": 2, "version": "v2", "prompt": "b", "is_active": True},
        ]
        selector = self._selector(lambda request: httpx.Response(200, json=rows))

        with self.assertLogs("scribe_gateway.services.prompts", level="ERROR") as captured:
            count = asyncio.run(selector.count_active(principal=self.principal))

        self.assertEqual(count, 2)
        self.assertIn("prompts.active_invariant_broken", captured.output[0])

    def test_wrapped_or_empty_active_payloads(self) -> None:
        wrapped = {"prompt": {"id": 4, "version": "v4", "content": "text"}}
        empty = {"prompt": None}

        active = asyncio.run(
            self._selector(lambda request: httpx.Response(200, json=wrapped)).get_active(principal=self.principal)
        )
        missing = asyncio.run(
            self._selector(lambda request: httpx.Response(200, json=empty)).get_active(principal=self.principal)
        )

        self.assertEqual(active.id, "4")
        self.assertEqual(active.body, "text")
        self.assertTrue(active.is_active)
        self.assertIsNone(missing)
