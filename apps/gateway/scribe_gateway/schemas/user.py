"""User administration schemas."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class User(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    username: str
    is_admin: bool = Field(default=False, validation_alias=AliasChoices("is_admin", "isAdmin"))


class CreateUserRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str | None = None
    password: str | None = None
    is_admin: bool = Field(default=False, validation_alias=AliasChoices("isAdmin", "is_admin"))


class Stats(BaseModel):
    total_users: int = 0
    total_transcriptions: int = 0
    total_errors: int = 0
