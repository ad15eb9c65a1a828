"""Error payload and error log schemas."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    error: str


class MessageResponse(BaseModel):
    message: str


class ErrorLogEntry(BaseModel):
    """Append-only failure record written by the backend."""

    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    owner_id: str | None = Field(default=None, validation_alias=AliasChoices("owner_id", "user_id"))
    job_id: str | None = Field(default=None, validation_alias=AliasChoices("job_id", "transcription_id"))
    created_at: datetime
    message: str = Field(validation_alias=AliasChoices("message", "error_message"))
    stack_trace: str | None = None
