"""HTTP client for callers of the gateway.

Responses pass through a pipeline of interceptors before the caller sees
them. Interceptors are async callables registered as httpx response hooks;
``SessionExpiryInterceptor`` is the one every session installs so that a 401
from any call ends the session.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
import inspect
import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from scribe_gateway.adapters.backend.client import extract_error_message
from scribe_gateway.core.logging_safety import safe_log_identifier
from scribe_gateway.schemas.auth import LoginResponse
from scribe_gateway.schemas.job import Job, SubmitJobResponse
from scribe_gateway.schemas.prompt import PromptFamily, VersionedPrompt

logger = logging.getLogger(__name__)

ResponseInterceptor = Callable[[httpx.Response], Awaitable[None]]
ModelT = TypeVar("ModelT", bound=BaseModel)


class GatewayCallError(Exception):
    """A single gateway request failed.

    This describes the call, never the job: a job that ended in the ``error``
    state is returned successfully and carries its own failure detail.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def _parse(model: type[ModelT], payload: Any, message: str) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise GatewayCallError(message) from exc


class SessionExpiryInterceptor:
    def __init__(self, on_expired: Callable[[], Awaitable[None] | None]) -> None:
        self._on_expired = on_expired

    async def __call__(self, response: httpx.Response) -> None:
        if response.status_code != 401:
            return
        logger.info("session.invalidated path=%s status=401", response.request.url.path)
        result = self._on_expired()
        if inspect.isawaitable(result):
            await result


class GatewayClient:
    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        interceptors: Iterable[ResponseInterceptor] = (),
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 30.0,
        api_prefix: str = "/api",
    ) -> None:
        self._base_url = base_url.rstrip("/") + api_prefix
        self._transport = transport
        self._timeout = timeout
        self._interceptors: list[ResponseInterceptor] = list(interceptors)
        self.token = token

    def add_interceptor(self, interceptor: ResponseInterceptor) -> None:
        self._interceptors.append(interceptor)

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=self._timeout,
                transport=self._transport,
                event_hooks={"response": list(self._interceptors)},
            ) as client:
                response = await client.request(method, path, **kwargs)
                await response.aread()
        except httpx.HTTPError as exc:
            raise GatewayCallError("Gateway is unreachable") from exc

        if not response.is_success:
            raise GatewayCallError(extract_error_message(response), response.status_code)
        return response

    async def _json(self, method: str, path: str, **kwargs: Any) -> Any:
        response = await self._send(method, path, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise GatewayCallError("Invalid response from gateway", response.status_code) from exc

    async def login(self, username: str, password: str) -> LoginResponse:
        payload = await self._json("POST", "/login", json={"username": username, "password": password})
        return _parse(LoginResponse, payload, "Invalid login response")

    async def list_transcriptions(self) -> list[Job]:
        """Fetch the caller's job snapshot.

        Rows that break the job contract are dropped and logged so one bad
        record cannot hold back the rest of the snapshot.
        """
        payload = await self._json("GET", "/transcriptions")
        if not isinstance(payload, list):
            raise GatewayCallError("Invalid job snapshot")

        jobs = []
        for item in payload:
            try:
                jobs.append(Job.model_validate(item))
            except ValidationError as exc:
                job_id = item.get("id") if isinstance(item, dict) else None
                logger.warning(
                    "store.invalid_row job_id=%s errors=%s",
                    safe_log_identifier(job_id, prefix="jid"),
                    exc.error_count(),
                )
        return jobs

    async def submit_transcription(
        self,
        *,
        drive_link: str | None = None,
        audio: tuple[str, bytes] | None = None,
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> SubmitJobResponse:
        fields = {"drive_link": drive_link, "start_time": start_time, "end_time": end_time}
        files: dict[str, Any] = {name: (None, value) for name, value in fields.items() if value}
        if audio is not None:
            files["file"] = (audio[0], audio[1], "application/octet-stream")
        payload = await self._json("POST", "/process", files=files)
        return _parse(SubmitJobResponse, payload or {}, "Invalid submission response")

    async def delete_transcription(self, job_id: str) -> None:
        await self._send("DELETE", "/admin/transcriptions", params={"id": job_id})

    async def list_prompts(self, family: PromptFamily) -> list[VersionedPrompt]:
        payload = await self._json("GET", f"/admin/{family.value}-prompts")
        if not isinstance(payload, list):
            raise GatewayCallError("Invalid prompt list")
        return [_parse(VersionedPrompt, item, "Invalid prompt list") for item in payload]

    async def create_prompt(self, family: PromptFamily, *, version: str, body: str) -> Any:
        return await self._json("POST", f"/admin/{family.value}-prompts", json={"version": version, "prompt": body})

    async def get_active_prompt(self, family: PromptFamily) -> VersionedPrompt | None:
        payload = await self._json("GET", f"/admin/settings/active-{family.value}-prompt")
        return _parse(VersionedPrompt, payload, "Invalid active prompt") if payload else None

    async def set_active_prompt(self, family: PromptFamily, prompt_id: str) -> None:
        await self._send(
            "POST",
            f"/admin/settings/active-{family.value}-prompt",
            json={family.id_field: prompt_id},
        )

    async def download(self, path: str) -> tuple[bytes, str, str]:
        """Fetch an artifact; returns body, content type and Content-Disposition."""
        response = await self._send("GET", path)
        return (
            response.content,
            response.headers.get("Content-Type", ""),
            response.headers.get("Content-Disposition", ""),
        )
