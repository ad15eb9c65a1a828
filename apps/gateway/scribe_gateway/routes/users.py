"""User administration routes."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, status

from scribe_gateway.routes.dependencies import get_user_service, require_admin
from scribe_gateway.schemas.auth import AuthPrincipal
from scribe_gateway.schemas.error import ErrorResponse, MessageResponse
from scribe_gateway.schemas.user import CreateUserRequest
from scribe_gateway.services.users import UserService

router = APIRouter(prefix="/admin/users", tags=["Users"])

_ADMIN_ERRORS: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
}


@router.get("", responses=_ADMIN_ERRORS)
async def list_users(
    principal: Annotated[AuthPrincipal, Depends(require_admin)],
    service: Annotated[UserService, Depends(get_user_service)],
) -> list[Any]:
    return await service.list_users(principal=principal)


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED, responses=_ADMIN_ERRORS)
async def create_user(
    payload: CreateUserRequest,
    principal: Annotated[AuthPrincipal, Depends(require_admin)],
    service: Annotated[UserService, Depends(get_user_service)],
) -> MessageResponse:
    return await service.create_user(
        principal=principal,
        username=payload.username,
        password=payload.password,
        is_admin=payload.is_admin,
    )


@router.delete("", response_model=MessageResponse, responses=_ADMIN_ERRORS)
async def delete_user(
    principal: Annotated[AuthPrincipal, Depends(require_admin)],
    service: Annotated[UserService, Depends(get_user_service)],
    user_id: Annotated[str | None, Query(alias="id")] = None,
) -> MessageResponse:
    return await service.delete_user(principal=principal, user_id=user_id)
