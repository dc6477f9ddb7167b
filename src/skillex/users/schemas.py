"""Request/response schemas for user profile endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from skillex.schemas import ApiModel, HttpUrlStr


class UserCreateRequest(ApiModel):
    handle: str = Field(..., min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_-]+$")
    full_name: str = Field(..., min_length=2, max_length=100)
    bio: str | None = Field(None, max_length=500)
    avatar_url: HttpUrlStr | None = None
    timezone: str = Field("UTC", min_length=1, max_length=64)
    languages: list[str] = Field(default_factory=list)
    location_city: str | None = Field(None, max_length=100)
    location_country: str | None = Field(None, max_length=100)


class UserUpdateRequest(ApiModel):
    """Partial profile update. The handle is immutable."""

    full_name: str | None = Field(None, min_length=2, max_length=100)
    bio: str | None = Field(None, max_length=500)
    avatar_url: HttpUrlStr | None = None
    timezone: str | None = Field(None, min_length=1, max_length=64)
    languages: list[str] | None = None
    location_city: str | None = Field(None, max_length=100)
    location_country: str | None = Field(None, max_length=100)


class UserResponse(ApiModel):
    id: str
    handle: str
    full_name: str
    bio: str | None = None
    avatar_url: str | None = None
    timezone: str
    languages: list[str]
    location_city: str | None = None
    location_country: str | None = None
    created_at: datetime
