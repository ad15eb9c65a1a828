"""Aggregate statistics and error log service layer."""

from typing import Any

from pydantic import TypeAdapter, ValidationError

from scribe_gateway.adapters.backend import BackendClient, unwrap
from scribe_gateway.errors import TransportFailure
from scribe_gateway.schemas.auth import AuthPrincipal
from scribe_gateway.schemas.error import ErrorLogEntry
from scribe_gateway.schemas.user import Stats

_ERROR_LOG_ADAPTER = TypeAdapter(list[ErrorLogEntry])


class MonitoringService:
    """Read-only admin views; payloads are checked for shape and returned as sent."""

    def __init__(self, backend: BackendClient) -> None:
        self._backend = backend

    async def stats(self, *, principal: AuthPrincipal) -> Any:
        payload = unwrap(await self._backend.request_json("GET", "/admin/stats", credential=principal.credential))
        try:
            Stats.model_validate(payload)
        except ValidationError as exc:
            raise TransportFailure("Invalid response from backend") from exc
        return payload

    async def error_log(self, *, principal: AuthPrincipal) -> list[Any]:
        payload = unwrap(await self._backend.request_json("GET", "/admin/logs", credential=principal.credential))
        try:
            _ERROR_LOG_ADAPTER.validate_python(payload)
        except ValidationError as exc:
            raise TransportFailure("Invalid response from backend") from exc
        return payload
