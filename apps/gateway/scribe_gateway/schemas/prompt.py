"""Versioned prompt schemas shared by the three prompt families."""

from datetime import datetime
from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class PromptFamily(str, Enum):
    TRANSCRIBE = "transcribe"
    PROOFREAD = "proofread"
    SYSTEM = "system"

    @property
    def collection_path(self) -> str:
        return f"/admin/{self.value}-prompts"

    @property
    def active_path(self) -> str:
        return f"/admin/settings/active-{self.value}-prompt"

    @property
    def id_field(self) -> str:
        return f"{self.value}_prompt_id"

    @property
    def label(self) -> str:
        return f"{self.value.capitalize()} prompt"


class VersionedPrompt(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    family: PromptFamily | None = None
    version: str
    body: str = Field(validation_alias=AliasChoices("body", "prompt", "content"))
    created_at: datetime | None = None
    is_active: bool = Field(default=False, validation_alias=AliasChoices("is_active", "active"))


class CreatePromptRequest(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    version: str | None = None
    prompt: str | None = None
