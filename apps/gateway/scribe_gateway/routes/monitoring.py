"""Aggregate statistics and error log routes."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from scribe_gateway.routes.dependencies import get_monitoring_service, require_admin
from scribe_gateway.schemas.auth import AuthPrincipal
from scribe_gateway.schemas.error import ErrorResponse
from scribe_gateway.services.monitoring import MonitoringService

router = APIRouter(prefix="/admin", tags=["Monitoring"])

_ADMIN_ERRORS: dict[int | str, dict[str, Any]] = {401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}


@router.get("/stats", responses=_ADMIN_ERRORS)
async def get_stats(
    principal: Annotated[AuthPrincipal, Depends(require_admin)],
    service: Annotated[MonitoringService, Depends(get_monitoring_service)],
) -> Any:
    return await service.stats(principal=principal)


@router.get("/logs", responses=_ADMIN_ERRORS)
async def get_error_log(
    principal: Annotated[AuthPrincipal, Depends(require_admin)],
    service: Annotated[MonitoringService, Depends(get_monitoring_service)],
) -> list[Any]:
    return await service.error_log(principal=principal)
