"""Prompt family routes, one router per family built from the same factory."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, status

from scribe_gateway.routes.dependencies import prompt_selector_dependency, require_admin
from scribe_gateway.schemas.auth import AuthPrincipal
from scribe_gateway.schemas.error import ErrorResponse, MessageResponse
from scribe_gateway.schemas.prompt import CreatePromptRequest, PromptFamily
from scribe_gateway.services.prompts import ActiveResourceSelector

_ADMIN_ERRORS: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
}


def build_prompt_router(family: PromptFamily) -> APIRouter:
    router = APIRouter(prefix="/admin", tags=["Prompts"])
    get_selector = prompt_selector_dependency(family)
    Selector = Annotated[ActiveResourceSelector, Depends(get_selector)]
    Admin = Annotated[AuthPrincipal, Depends(require_admin)]

    @router.get(
        f"/{family.value}-prompts",
        name=f"list_{family.value}_prompts",
        responses=_ADMIN_ERRORS,
    )
    async def list_prompts(principal: Admin, selector: Selector) -> list[Any]:
        return await selector.list_payload(principal=principal)

    @router.post(
        f"/{family.value}-prompts",
        name=f"create_{family.value}_prompt",
        response_model=None,
        status_code=status.HTTP_201_CREATED,
        responses=_ADMIN_ERRORS,
    )
    async def create_prompt(
        payload: CreatePromptRequest,
        principal: Admin,
        selector: Selector,
    ) -> Any:
        return await selector.create(principal=principal, version=payload.version, body=payload.prompt)

    @router.get(
        f"/settings/active-{family.value}-prompt",
        name=f"get_active_{family.value}_prompt",
        responses=_ADMIN_ERRORS,
    )
    async def get_active_prompt(principal: Admin, selector: Selector) -> Any:
        return await selector.active_payload(principal=principal)

    @router.post(
        f"/settings/active-{family.value}-prompt",
        name=f"set_active_{family.value}_prompt",
        response_model=MessageResponse,
        status_code=status.HTTP_201_CREATED,
        responses={**_ADMIN_ERRORS, 404: {"model": ErrorResponse}},
    )
    async def set_active_prompt(
        principal: Admin,
        selector: Selector,
        payload: Annotated[dict[str, Any], Body()],
    ) -> MessageResponse:
        prompt_id = payload.get(family.id_field, payload.get("id"))
        return await selector.set_active(principal=principal, prompt_id=prompt_id)

    return router


router = APIRouter()
for _family in PromptFamily:
    router.include_router(build_prompt_router(_family))
