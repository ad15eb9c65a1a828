"""HTTP client for the transcription backend.

Every gateway operation reaches the backend through ``BackendClient``. Calls
open a fresh ``httpx.AsyncClient`` per operation, attach the principal's
credential as a bearer token, and return ``Ok``/``Err`` results instead of
raising, so route handlers decide how a failure is surfaced.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Mapping
from typing import Any
from urllib.parse import quote

import httpx

from scribe_gateway.adapters.backend.result import Err, Ok
from scribe_gateway.core.config import Settings
from scribe_gateway.core.logging_safety import safe_backend_path

logger = logging.getLogger(__name__)

_GENERIC_BACKEND_ERROR = "Backend request failed"
_UNAVAILABLE_MESSAGE = "Backend is unavailable"
_TIMEOUT_MESSAGE = "Backend did not respond in time"
_INVALID_RESPONSE_MESSAGE = "Invalid response from backend"
_ERROR_MESSAGE_KEYS = ("error", "msg", "message", "detail")


def extract_error_message(response: httpx.Response) -> str:
    """Pull a human-readable message out of a backend error response."""
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return text[:500] if text else _GENERIC_BACKEND_ERROR

    if isinstance(body, dict):
        for key in _ERROR_MESSAGE_KEYS:
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return _GENERIC_BACKEND_ERROR


def path_segment(value: str) -> str:
    """Encode ``value`` as exactly one backend path segment.

    Slashes, ``?`` and ``#`` are percent-encoded. An all-dot value is encoded
    too, since httpx would otherwise resolve it as a dot segment.
    """
    encoded = quote(value, safe="")
    if encoded and set(encoded) == {"."}:
        return "%2E" * len(encoded)
    return encoded


class BackendStream:
    """An open streaming response; the owner must call ``aclose``."""

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response) -> None:
        self._client = client
        self._response = response

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        async for chunk in self._response.aiter_bytes():
            yield chunk

    async def aclose(self) -> None:
        await self._response.aclose()
        await self._client.aclose()


class BackendClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        connect_timeout: float = 10.0,
        submit_timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout, connect=connect_timeout)
        # Submissions hold the connection open while the backend starts processing.
        self._submit_timeout = httpx.Timeout(submit_timeout, connect=connect_timeout)
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> BackendClient:
        return cls(
            settings.backend_url,
            timeout=settings.request_timeout_seconds,
            connect_timeout=settings.connect_timeout_seconds,
            submit_timeout=settings.submit_timeout_seconds,
            transport=transport,
        )

    def _client(self, credential: str | None, timeout: httpx.Timeout) -> httpx.AsyncClient:
        headers = {"Accept": "application/json"}
        if credential is not None:
            headers["Authorization"] = f"Bearer {credential}"
        return httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=timeout,
            transport=self._transport,
        )

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        credential: str | None,
        json: Any = None,
        params: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
        files: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: httpx.Timeout | None = None,
    ) -> Ok[Any] | Err:
        """Send one request and decode the JSON answer."""
        log_path = safe_backend_path(path)
        started = time.perf_counter()
        try:
            async with self._client(credential, timeout or self._timeout) as client:
                response = await client.request(
                    method,
                    path,
                    json=json,
                    params=params,
                    data=data,
                    files=files,
                    headers=headers,
                )
        except httpx.TimeoutException as exc:
            logger.warning(
                "backend.transport_failed method=%s path=%s reason=%s",
                method,
                log_path,
                type(exc).__name__,
            )
            return Err(_TIMEOUT_MESSAGE, 502, transport=True)
        except httpx.HTTPError as exc:
            logger.warning(
                "backend.transport_failed method=%s path=%s reason=%s",
                method,
                log_path,
                type(exc).__name__,
            )
            return Err(_UNAVAILABLE_MESSAGE, 502, transport=True)

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            "backend.request method=%s path=%s status=%s elapsed_ms=%s",
            method,
            log_path,
            response.status_code,
            elapsed_ms,
        )

        if not response.is_success:
            message = extract_error_message(response)
            logger.info("backend.rejected method=%s path=%s status=%s", method, log_path, response.status_code)
            return Err(message, response.status_code)

        if not response.content:
            return Ok(None, status_code=response.status_code)
        try:
            return Ok(response.json(), status_code=response.status_code)
        except ValueError:
            logger.warning("backend.transport_failed method=%s path=%s reason=invalid_json", method, log_path)
            return Err(_INVALID_RESPONSE_MESSAGE, 502, transport=True)

    async def login(self, *, username: str, password: str) -> Ok[Any] | Err:
        return await self.request_json(
            "POST",
            "/login",
            credential=None,
            json={"username": username, "password": password},
        )

    async def submit_job(
        self,
        *,
        credential: str,
        data: Mapping[str, str],
        files: Mapping[str, Any] | None = None,
    ) -> Ok[Any] | Err:
        return await self.request_json(
            "POST",
            "/process",
            credential=credential,
            data=data,
            files=files,
            headers={"Connection": "keep-alive"},
            timeout=self._submit_timeout,
        )

    async def open_stream(self, path: str, *, credential: str) -> Ok[BackendStream] | Err:
        """Start a download; on success the caller owns the returned stream."""
        log_path = safe_backend_path(path)
        client = self._client(credential, self._timeout)
        try:
            request = client.build_request("GET", path, headers={"Accept": "*/*"})
            response = await client.send(request, stream=True)
        except httpx.HTTPError as exc:
            await client.aclose()
            logger.warning(
                "backend.transport_failed method=GET path=%s reason=%s",
                log_path,
                type(exc).__name__,
            )
            message = _TIMEOUT_MESSAGE if isinstance(exc, httpx.TimeoutException) else _UNAVAILABLE_MESSAGE
            return Err(message, 502, transport=True)

        logger.info("backend.request method=GET path=%s status=%s streamed=true", log_path, response.status_code)
        if not response.is_success:
            try:
                await response.aread()
                message = extract_error_message(response)
            except httpx.HTTPError:
                message = _GENERIC_BACKEND_ERROR
            finally:
                await response.aclose()
                await client.aclose()
            logger.info("backend.rejected method=GET path=%s status=%s", log_path, response.status_code)
            return Err(message, response.status_code)

        return Ok(BackendStream(client, response), status_code=response.status_code)


__all__ = ["BackendClient", "BackendStream", "extract_error_message"]
