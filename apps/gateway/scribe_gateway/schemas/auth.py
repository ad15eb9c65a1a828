"""Authentication schemas."""

from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class AuthPrincipal(BaseModel):
    """Normalized authenticated principal used by gateway services."""

    user_id: str = Field(min_length=1)
    display_name: str = Field(min_length=1)
    role: Role = Role.USER
    credential: str = Field(min_length=1, repr=False)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


class LoginRequest(BaseModel):
    username: str | None = None
    password: str | None = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    display_name: str
    is_admin: bool
