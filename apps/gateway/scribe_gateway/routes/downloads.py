"""Artifact download routes."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from scribe_gateway.routes.dependencies import get_authenticated_principal, get_download_service, require_admin
from scribe_gateway.schemas.auth import AuthPrincipal
from scribe_gateway.schemas.error import ErrorResponse
from scribe_gateway.services.downloads import ArtifactDownload, DownloadService

router = APIRouter(tags=["Downloads"])

_DOWNLOAD_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


def _stream(download: ArtifactDownload) -> StreamingResponse:
    return StreamingResponse(
        download.stream.aiter_bytes(),
        media_type=download.media_type,
        headers=download.headers,
        background=BackgroundTask(download.stream.aclose),
    )


@router.get("/download/user-files/txt/{username}/{transcription_id}/{filename}", responses=_DOWNLOAD_ERRORS)
async def download_user_text_file(
    username: str,
    transcription_id: str,
    filename: str,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[DownloadService, Depends(get_download_service)],
) -> StreamingResponse:
    download = await service.user_text_file(
        principal=principal,
        username=username,
        job_id=transcription_id,
        filename=filename,
    )
    return _stream(download)


@router.get("/download/word/{filename}", responses=_DOWNLOAD_ERRORS)
async def download_word_file(
    filename: str,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[DownloadService, Depends(get_download_service)],
) -> StreamingResponse:
    return _stream(await service.word_file(principal=principal, filename=filename))


@router.get("/download/{file_type}/{transcription_id}", responses=_DOWNLOAD_ERRORS)
async def download_job_artifact(
    file_type: str,
    transcription_id: str,
    principal: Annotated[AuthPrincipal, Depends(get_authenticated_principal)],
    service: Annotated[DownloadService, Depends(get_download_service)],
) -> StreamingResponse:
    download = await service.job_artifact(principal=principal, file_type=file_type, job_id=transcription_id)
    return _stream(download)


@router.get("/admin/download/word/{username}/{filename}", responses=_DOWNLOAD_ERRORS)
async def admin_download_word_file(
    username: str,
    filename: str,
    principal: Annotated[AuthPrincipal, Depends(require_admin)],
    service: Annotated[DownloadService, Depends(get_download_service)],
) -> StreamingResponse:
    return _stream(await service.admin_word_file(principal=principal, username=username, filename=filename))
