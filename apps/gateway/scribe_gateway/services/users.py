"""User administration service layer."""

from typing import Any

from pydantic import TypeAdapter, ValidationError

from scribe_gateway.adapters.backend import BackendClient, path_segment, unwrap
from scribe_gateway.errors import BadRequest, TransportFailure
from scribe_gateway.schemas.auth import AuthPrincipal
from scribe_gateway.schemas.error import MessageResponse
from scribe_gateway.schemas.user import User

_USERS_ADAPTER = TypeAdapter(list[User])


class UserService:
    def __init__(self, backend: BackendClient) -> None:
        self._backend = backend

    async def list_users(self, *, principal: AuthPrincipal) -> list[Any]:
        payload = unwrap(await self._backend.request_json("GET", "/admin/users", credential=principal.credential))
        try:
            _USERS_ADAPTER.validate_python(payload)
        except ValidationError as exc:
            raise TransportFailure("Invalid response from backend") from exc
        return payload

    async def create_user(
        self,
        *,
        principal: AuthPrincipal,
        username: str | None,
        password: str | None,
        is_admin: bool,
    ) -> MessageResponse:
        if not (username or "").strip() or not password:
            raise BadRequest("Username and password are required")

        unwrap(
            await self._backend.request_json(
                "POST",
                "/admin/users",
                credential=principal.credential,
                json={"username": username.strip(), "password": password, "isAdmin": is_admin},
            )
        )
        return MessageResponse(message="User created successfully")

    async def delete_user(self, *, principal: AuthPrincipal, user_id: str | None) -> MessageResponse:
        user_id = (user_id or "").strip()
        if not user_id:
            raise BadRequest("User ID is required")

        unwrap(
            await self._backend.request_json(
                "DELETE",
                f"/admin/users/{path_segment(user_id)}",
                credential=principal.credential,
            )
        )
        return MessageResponse(message="User deleted successfully")
