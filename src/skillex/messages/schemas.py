"""Request/response schemas for cohort chat."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from skillex.schemas import ApiModel


class MessageCreateRequest(ApiModel):
    body: str = Field(..., min_length=1, max_length=2000)


class MessageResponse(ApiModel):
    id: str
    cohort_id: str
    user_id: str
    body: str
    created_at: datetime


class MessagePageResponse(ApiModel):
    messages: list[MessageResponse]
    cursor: str | None = None
    has_more: bool
