"""Request/response schemas for skills."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator

from skillex.schemas import ApiModel

SkillKind = Literal["teach", "learn"]
SkillLevel = Literal["beginner", "intermediate", "advanced", "expert"]


def _clean_tags(tags: list[str] | None) -> list[str] | None:
    if tags is None:
        return None
    cleaned = [t.strip() for t in tags if t.strip()]
    if not cleaned:
        msg = "at least one non-empty tag is required"
        raise ValueError(msg)
    return cleaned


class SkillCreateRequest(ApiModel):
    kind: SkillKind
    tags: list[str] = Field(..., min_length=1, max_length=20)
    level: SkillLevel | None = None
    notes: str | None = Field(None, max_length=500)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str] | None:
        return _clean_tags(v)


class SkillUpdateRequest(ApiModel):
    kind: SkillKind | None = None
    tags: list[str] | None = Field(None, min_length=1, max_length=20)
    level: SkillLevel | None = None
    notes: str | None = Field(None, max_length=500)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str] | None) -> list[str] | None:
        return _clean_tags(v)


class SkillResponse(ApiModel):
    id: str
    user_id: str
    kind: str
    tags: list[str]
    level: str | None = None
    notes: str | None = None
    created_at: datetime


class SkillListResponse(ApiModel):
    skills: list[SkillResponse]
