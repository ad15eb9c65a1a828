"""Artifact download service layer."""

from dataclasses import dataclass
from enum import Enum
import logging
import re
from urllib.parse import quote

from scribe_gateway.adapters.backend import BackendClient, BackendStream, path_segment, unwrap
from scribe_gateway.core.logging_safety import safe_log_identifier
from scribe_gateway.errors import BadRequest
from scribe_gateway.schemas.auth import AuthPrincipal

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r'[\x00-\x1f\x7f"\\;]')


class ArtifactKind(str, Enum):
    TXT = "txt"
    MD = "md"
    WORD = "word"

    @classmethod
    def from_segment(cls, segment: str) -> "ArtifactKind":
        try:
            return _KIND_ALIASES[segment.strip().lower()]
        except KeyError as exc:
            raise BadRequest(f"Unsupported file type: {segment}") from exc

    @property
    def media_type(self) -> str:
        return _MEDIA_TYPES[self]

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]


_KIND_ALIASES: dict[str, ArtifactKind] = {
    "txt": ArtifactKind.TXT,
    "text": ArtifactKind.TXT,
    "md": ArtifactKind.MD,
    "markdown": ArtifactKind.MD,
    "word": ArtifactKind.WORD,
    "docx": ArtifactKind.WORD,
}
_MEDIA_TYPES: dict[ArtifactKind, str] = {
    ArtifactKind.TXT: "text/plain; charset=utf-8",
    ArtifactKind.MD: "text/markdown; charset=utf-8",
    ArtifactKind.WORD: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
_EXTENSIONS: dict[ArtifactKind, str] = {
    ArtifactKind.TXT: "txt",
    ArtifactKind.MD: "md",
    ArtifactKind.WORD: "docx",
}


def sanitize_filename(raw: str | None, *, fallback: str) -> str:
    """Reduce an untrusted filename to a single safe path component."""
    name = (raw or "").replace("\\", "/").rsplit("/", 1)[-1]
    name = _UNSAFE_FILENAME_CHARS.sub("", name).strip().lstrip(".")
    return name or fallback


def content_disposition(filename: str) -> str:
    """Build an attachment header; non-ASCII names also get an RFC 5987 ``filename*``."""
    ascii_name = filename.encode("ascii", "replace").decode("ascii").replace("?", "_")
    header = f'attachment; filename="{ascii_name}"'
    if ascii_name != filename:
        header += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return header


@dataclass(slots=True)
class ArtifactDownload:
    stream: BackendStream
    media_type: str
    filename: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Content-Disposition": content_disposition(self.filename)}


def _segment(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise BadRequest("Download path is incomplete")
    return path_segment(value)


class DownloadService:
    def __init__(self, backend: BackendClient) -> None:
        self._backend = backend

    async def _open(self, *, principal: AuthPrincipal, path: str, kind: ArtifactKind, filename: str) -> ArtifactDownload:
        stream = unwrap(await self._backend.open_stream(path, credential=principal.credential))
        logger.info(
            "downloads.started principal_id=%s kind=%s",
            safe_log_identifier(principal.user_id, prefix="pid"),
            kind.value,
        )
        return ArtifactDownload(stream=stream, media_type=kind.media_type, filename=filename)

    async def job_artifact(self, *, principal: AuthPrincipal, file_type: str, job_id: str) -> ArtifactDownload:
        kind = ArtifactKind.from_segment(file_type)
        fallback = f"transcription_{sanitize_filename(job_id, fallback='download')}.{kind.extension}"
        return await self._open(
            principal=principal,
            path=f"/download/{_segment(file_type)}/{_segment(job_id)}",
            kind=kind,
            filename=fallback,
        )

    async def user_text_file(
        self,
        *,
        principal: AuthPrincipal,
        username: str,
        job_id: str,
        filename: str,
    ) -> ArtifactDownload:
        return await self._open(
            principal=principal,
            path=f"/download/user-files/txt/{_segment(username)}/{_segment(job_id)}/{_segment(filename)}",
            kind=ArtifactKind.TXT,
            filename=sanitize_filename(filename, fallback="download.txt"),
        )

    async def word_file(self, *, principal: AuthPrincipal, filename: str) -> ArtifactDownload:
        return await self._open(
            principal=principal,
            path=f"/download/word/{_segment(filename)}",
            kind=ArtifactKind.WORD,
            filename=sanitize_filename(filename, fallback="download.docx"),
        )

    async def admin_word_file(self, *, principal: AuthPrincipal, username: str, filename: str) -> ArtifactDownload:
        return await self._open(
            principal=principal,
            path=f"/admin/download/word/{_segment(username)}/{_segment(filename)}",
            kind=ArtifactKind.WORD,
            filename=sanitize_filename(filename, fallback="download.docx"),
        )
