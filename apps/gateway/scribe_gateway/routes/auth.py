"""Session routes."""

from typing import Annotated

from fastapi import APIRouter, Depends

from scribe_gateway.routes.dependencies import get_session_service
from scribe_gateway.schemas.auth import LoginRequest, LoginResponse
from scribe_gateway.schemas.error import ErrorResponse
from scribe_gateway.services.sessions import SessionService

router = APIRouter(tags=["Session"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def login(
    payload: LoginRequest,
    service: Annotated[SessionService, Depends(get_session_service)],
) -> LoginResponse:
    return await service.login(username=payload.username, password=payload.password)
