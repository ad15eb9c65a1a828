"""Transcription job routes."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from scribe_gateway.routes.dependencies import get_authenticated_principal, get_transcription_service, require_admin
from scribe_gateway.schemas.auth import AuthPrincipal
from scribe_gateway.schemas.error import ErrorResponse, MessageResponse
from scribe_gateway.services.transcriptions import TranscriptionService, UploadedAudio

router = APIRouter(tags=["Transcriptions"])


@router.post(
    "/process",
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def submit_transcription(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[TranscriptionService, Depends(get_transcription_service)],
    file: Annotated[UploadFile | None, File()] = None,
    drive_link: Annotated[str | None, Form()] = None,
    start_time: Annotated[str | None, Form()] = None,
    end_time: Annotated[str | None, Form()] = None,
) -> Any:
    upload = None
    if file is not None and file.filename:
        upload = UploadedAudio(filename=file.filename, stream=file.file, content_type=file.content_type)
    return await service.submit(
        principal=principal,
        upload=upload,
        drive_link=drive_link,
        start_time=start_time,
        end_time=end_time,
    )


@router.get("/transcriptions", responses={401: {"model": ErrorResponse}})
async def list_own_transcriptions(
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[TranscriptionService, Depends(get_transcription_service)],
) -> list[Any]:
    return await service.list_own(principal=principal)


@router.get(
    "/admin/transcriptions",
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def list_all_transcriptions(
    principal: Annotated[AuthPrincipal, Depends(require_admin)],
    service: Annotated[TranscriptionService, Depends(get_transcription_service)],
) -> list[Any]:
    return await service.list_all(principal=principal)


@router.delete(
    "/admin/transcriptions",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def delete_transcription(
    principal: Annotated[AuthPrincipal, Depends(require_admin)],
    service: Annotated[TranscriptionService, Depends(get_transcription_service)],
    job_id: Annotated[str | None, Query(alias="id")] = None,
) -> MessageResponse:
    return await service.delete(principal=principal, job_id=job_id)
