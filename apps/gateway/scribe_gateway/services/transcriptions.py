"""Transcription job service layer."""

from dataclasses import dataclass
import logging
import re
from typing import Any, BinaryIO
from urllib.parse import urlparse

from scribe_gateway.adapters.backend import BackendClient, path_segment, unwrap
from scribe_gateway.core.logging_safety import safe_log_identifier
from scribe_gateway.errors import BadRequest, TransportFailure
from scribe_gateway.schemas.auth import AuthPrincipal
from scribe_gateway.schemas.error import MessageResponse

logger = logging.getLogger(__name__)

_CLOCK_PATTERN = re.compile(r"^(?:(\d+):)?([0-5]?\d):([0-5]\d(?:\.\d+)?)$")


@dataclass(slots=True)
class UploadedAudio:
    filename: str
    stream: BinaryIO
    content_type: str | None = None


def parse_clock_time(value: str) -> float:
    """Convert ``HH:MM:SS``, ``MM:SS`` or plain seconds to seconds."""
    text = value.strip()
    match = _CLOCK_PATTERN.match(text)
    if match:
        hours, minutes, seconds = match.groups()
        return int(hours or 0) * 3600 + int(minutes) * 60 + float(seconds)
    try:
        seconds = float(text)
    except ValueError as exc:
        raise ValueError(f"invalid time value: {value!r}") from exc
    if seconds < 0:
        raise ValueError(f"invalid time value: {value!r}")
    return seconds


def _is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


class TranscriptionService:
    def __init__(self, backend: BackendClient) -> None:
        self._backend = backend

    async def submit(
        self,
        *,
        principal: AuthPrincipal,
        upload: UploadedAudio | None,
        drive_link: str | None,
        start_time: str | None,
        end_time: str | None,
    ) -> Any:
        drive_link = (drive_link or "").strip() or None
        if upload is None and drive_link is None:
            raise BadRequest("Either an audio file or a drive link is required")
        if upload is not None and drive_link is not None:
            raise BadRequest("Provide either an audio file or a drive link, not both")
        if drive_link is not None and not _is_http_url(drive_link):
            raise BadRequest("Drive link must be an http(s) URL")

        fields: dict[str, Any] = {}
        if drive_link is not None:
            fields["drive_link"] = (None, drive_link)

        bounds: dict[str, float] = {}
        for name, value in (("start_time", start_time), ("end_time", end_time)):
            value = (value or "").strip()
            if not value:
                continue
            try:
                bounds[name] = parse_clock_time(value)
            except ValueError as exc:
                raise BadRequest(f"Invalid {name.replace('_', ' ')}") from exc
            fields[name] = (None, value)
        if "start_time" in bounds and "end_time" in bounds and bounds["start_time"] >= bounds["end_time"]:
            raise BadRequest("Start time must be before end time")

        if upload is not None:
            fields["file"] = (upload.filename, upload.stream, upload.content_type or "application/octet-stream")

        result = unwrap(await self._backend.submit_job(credential=principal.credential, data={}, files=fields))
        logger.info(
            "transcriptions.submitted principal_id=%s source=%s",
            safe_log_identifier(principal.user_id, prefix="pid"),
            "link" if drive_link else "upload",
        )
        return result

    async def list_own(self, *, principal: AuthPrincipal) -> list[Any]:
        jobs = unwrap(await self._backend.request_json("GET", "/transcriptions", credential=principal.credential))
        if not isinstance(jobs, list):
            raise TransportFailure("Invalid response from backend")
        return jobs

    async def list_all(self, *, principal: AuthPrincipal) -> list[Any]:
        jobs = unwrap(
            await self._backend.request_json("GET", "/admin/transcriptions", credential=principal.credential)
        )
        if not isinstance(jobs, list):
            raise TransportFailure("Invalid response from backend")
        return jobs

    async def delete(self, *, principal: AuthPrincipal, job_id: str | None) -> MessageResponse:
        job_id = (job_id or "").strip()
        if not job_id:
            raise BadRequest("Transcription ID is required")

        unwrap(
            await self._backend.request_json(
                "DELETE",
                f"/admin/transcriptions/{path_segment(job_id)}",
                credential=principal.credential,
            )
        )
        logger.info("transcriptions.deleted job_id=%s", safe_log_identifier(job_id, prefix="jid"))
        return MessageResponse(message="Transcription deleted successfully")
