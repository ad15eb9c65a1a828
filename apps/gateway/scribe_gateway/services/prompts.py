"""Active-version selection for the prompt families.

Each family (transcribe, proofread, system) stores many prompt versions and
marks at most one as active. ``ActiveResourceSelector`` is the single
implementation for all three; the family only decides the backend paths and
the id field name of the activation payload.

Reads are validated against ``VersionedPrompt`` but handed to routes exactly as
the backend sent them.
"""

import logging
from typing import Any

from pydantic import ValidationError

from scribe_gateway.adapters.backend import BackendClient, unwrap
from scribe_gateway.core.logging_safety import safe_log_identifier
from scribe_gateway.errors import BadRequest, NotFound, TransportFailure
from scribe_gateway.schemas.auth import AuthPrincipal
from scribe_gateway.schemas.error import MessageResponse
from scribe_gateway.schemas.prompt import PromptFamily, VersionedPrompt

logger = logging.getLogger(__name__)


class ActiveResourceSelector:
    def __init__(self, family: PromptFamily, backend: BackendClient) -> None:
        self.family = family
        self._backend = backend

    def _to_prompt(self, payload: Any, *, is_active: bool | None = None) -> VersionedPrompt:
        prompt = VersionedPrompt.model_validate(payload)
        prompt.family = self.family
        if is_active is not None:
            prompt.is_active = is_active
        return prompt

    async def _fetch_all(self, principal: AuthPrincipal) -> tuple[list[Any], list[VersionedPrompt]]:
        payload = unwrap(
            await self._backend.request_json("GET", self.family.collection_path, credential=principal.credential)
        )
        if not isinstance(payload, list):
            raise TransportFailure("Invalid response from backend")
        try:
            prompts = [self._to_prompt(item) for item in payload]
        except ValidationError as exc:
            raise TransportFailure("Invalid response from backend") from exc

        active_count = sum(1 for prompt in prompts if prompt.is_active)
        if active_count > 1:
            logger.error("prompts.active_invariant_broken family=%s active_count=%s", self.family.value, active_count)
        return payload, prompts

    async def list_all(self, *, principal: AuthPrincipal) -> list[VersionedPrompt]:
        _, prompts = await self._fetch_all(principal)
        return prompts

    async def list_payload(self, *, principal: AuthPrincipal) -> list[Any]:
        payload, _ = await self._fetch_all(principal)
        return payload

    async def count_active(self, *, principal: AuthPrincipal) -> int:
        return sum(1 for prompt in await self.list_all(principal=principal) if prompt.is_active)

    async def create(self, *, principal: AuthPrincipal, version: str | None, body: str | None) -> Any:
        version = (version or "").strip()
        if not version or not (body or "").strip():
            raise BadRequest("Version and prompt are required")

        created = unwrap(
            await self._backend.request_json(
                "POST",
                self.family.collection_path,
                credential=principal.credential,
                json={"version": version, "prompt": body},
            )
        )
        logger.info("prompts.created family=%s version=%s", self.family.value, version)
        if created is None:
            return MessageResponse(message=f"{self.family.label} created successfully")
        return created

    async def _fetch_active(self, principal: AuthPrincipal) -> tuple[Any, VersionedPrompt | None]:
        payload = unwrap(
            await self._backend.request_json("GET", self.family.active_path, credential=principal.credential)
        )
        record = payload
        if isinstance(record, dict) and set(record) <= {"prompt", self.family.id_field, "message"}:
            # Some backends wrap the record or answer with an empty envelope.
            record = record.get("prompt")
        if not record:
            return payload, None
        try:
            return payload, self._to_prompt(record, is_active=True)
        except ValidationError as exc:
            raise TransportFailure("Invalid response from backend") from exc

    async def get_active(self, *, principal: AuthPrincipal) -> VersionedPrompt | None:
        _, prompt = await self._fetch_active(principal)
        return prompt

    async def active_payload(self, *, principal: AuthPrincipal) -> Any:
        payload, _ = await self._fetch_active(principal)
        return payload

    async def set_active(self, *, principal: AuthPrincipal, prompt_id: Any) -> MessageResponse:
        target_id = str(prompt_id).strip() if prompt_id is not None else ""
        if not target_id:
            raise BadRequest(f"{self.family.label} id is required")

        known_ids = {prompt.id for prompt in await self.list_all(principal=principal)}
        if target_id not in known_ids:
            logger.info(
                "prompts.activate_rejected family=%s prompt_id=%s reason=not_found",
                self.family.value,
                safe_log_identifier(target_id, prefix="prid"),
            )
            raise NotFound(f"{self.family.label} not found")

        unwrap(
            await self._backend.request_json(
                "POST",
                self.family.active_path,
                credential=principal.credential,
                json={self.family.id_field: target_id},
            )
        )
        logger.info(
            "prompts.activated family=%s prompt_id=%s",
            self.family.value,
            safe_log_identifier(target_id, prefix="prid"),
        )
        return MessageResponse(message=f"{self.family.label} activated successfully")
