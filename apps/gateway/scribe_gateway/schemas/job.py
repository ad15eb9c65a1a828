"""Transcription job schemas."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class JobStatus(str, Enum):
    SUBMITTED = "submitted"
    UPLOADING = "uploading"
    TRIMMING = "trimming"
    WAITING = "waiting"
    TRANSCRIBING = "transcribing"
    WAITING_FOR_PROOFREADING = "waiting_for_proofreading"
    PROOFREADING = "proofreading"
    CONVERTING = "converting"
    COMPLETED = "completed"
    ERROR = "error"


def parse_status(raw: Any) -> JobStatus | str:
    """Return the recognised status tag, or the raw value when the backend sent something new."""
    if isinstance(raw, JobStatus):
        return raw
    text = str(raw if raw is not None else "")
    try:
        return JobStatus(text.strip().lower())
    except ValueError:
        return text


class SourceKind(str, Enum):
    UPLOAD = "upload"
    LINK = "link"


class JobSource(BaseModel):
    kind: SourceKind
    reference: str


_ARTIFACT_WIRE_KEYS: dict[str, tuple[str, ...]] = {
    "plain_text": ("plain_text", "txt_path", "text_path"),
    "markdown": ("markdown", "md_path", "markdown_path"),
    "word_document": ("word_document", "document_path", "word_path", "docx_path"),
}


class JobArtifacts(BaseModel):
    plain_text: str | None = None
    markdown: str | None = None
    word_document: str | None = None

    def is_empty(self) -> bool:
        return not (self.plain_text or self.markdown or self.word_document)


class Job(BaseModel):
    """One transcription job snapshot as reported by the backend.

    Backend wire names (``user_id``, ``error_message``, ``document_path`` ...) are
    accepted and folded into the gateway shape. Status values outside the known
    tag set are kept verbatim so newer backends never break a refresh.
    """

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    owner_id: str | None = Field(default=None, validation_alias=AliasChoices("owner_id", "user_id", "username"))
    created_at: datetime
    updated_at: datetime | None = None
    source: JobSource | None = None
    status: JobStatus | str = Field(union_mode="left_to_right")
    artifacts: JobArtifacts = Field(default_factory=JobArtifacts)
    external_artifact_link: str | None = Field(
        default=None,
        validation_alias=AliasChoices("external_artifact_link", "google_doc_link", "doc_link"),
    )
    failure_detail: str | None = Field(
        default=None,
        validation_alias=AliasChoices("failure_detail", "error_message"),
    )

    @model_validator(mode="before")
    @classmethod
    def _fold_backend_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        folded = dict(data)

        if "artifacts" not in folded:
            artifacts: dict[str, str] = {}
            for field_name, wire_keys in _ARTIFACT_WIRE_KEYS.items():
                for key in wire_keys:
                    value = folded.pop(key, None)
                    if value and field_name not in artifacts:
                        artifacts[field_name] = value
            folded["artifacts"] = artifacts

        if "source" not in folded:
            link = folded.pop("drive_link", None) or folded.pop("google_drive_link", None)
            filename = folded.pop("filename", None) or folded.pop("original_filename", None)
            if link:
                folded["source"] = {"kind": SourceKind.LINK, "reference": link}
            elif filename:
                folded["source"] = {"kind": SourceKind.UPLOAD, "reference": filename}

        return folded

    @field_validator("status", mode="before")
    @classmethod
    def _recognise_status(cls, value: Any) -> JobStatus | str:
        return parse_status(value)

    @model_validator(mode="after")
    def _check_terminal_fields(self) -> "Job":
        # Unknown tags carry no field contract.
        if not isinstance(self.status, JobStatus):
            return self

        has_artifacts = not self.artifacts.is_empty()
        if self.status is JobStatus.COMPLETED and not has_artifacts:
            raise ValueError("completed job must carry at least one artifact")
        if self.status is not JobStatus.COMPLETED and has_artifacts:
            raise ValueError(f"artifacts are only allowed on completed jobs, got status {self.status.value}")

        has_failure = bool(self.failure_detail)
        if self.status is JobStatus.ERROR and not has_failure:
            raise ValueError("error job must carry a failure detail")
        if self.status is not JobStatus.ERROR and has_failure:
            raise ValueError(f"failure detail is only allowed on error jobs, got status {self.status.value}")
        return self

    @property
    def status_value(self) -> str:
        return self.status.value if isinstance(self.status, JobStatus) else self.status


class SubmitJobResponse(BaseModel):
    """Backend acknowledgement for ``POST /process``; extra keys pass through."""

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    message: str | None = None
    transcription_id: str | None = Field(default=None, validation_alias=AliasChoices("transcription_id", "id"))
