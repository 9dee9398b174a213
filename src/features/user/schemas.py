"""User schemas (DTOs)."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator


# Request schemas
class UserUpdateRequest(BaseModel):
    """Profile update request."""

    about: str = Field("", max_length=500)


# Response schemas
class UserResponse(BaseModel):
    """User response."""

    id: UUID
    email: EmailStr
    username: str
    about: str = Field("", validation_alias="about_me")
    avatar_url: str | None = None

    model_config = {"from_attributes": True}

    @field_validator("about", mode="before")
    @classmethod
    def empty_about(cls, value: str | None) -> str:
        return value or ""
