"""Request/response schemas for cohorts, members and sessions."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from skillex.schemas import ApiModel, HttpUrlStr, UserSummary

Visibility = Literal["private", "public"]
MemberRole = Literal["teacher", "learner", "facilitator"]


class CohortCreateRequest(ApiModel):
    title: str = Field(..., min_length=3, max_length=100)
    size: int = Field(2, ge=2, le=50)
    start_date: datetime
    weeks: int = Field(6, ge=1, le=24)
    visibility: Visibility = "private"
    city: str | None = Field(None, max_length=100)


class CohortUpdateRequest(ApiModel):
    title: str | None = Field(None, min_length=3, max_length=100)
    size: int | None = Field(None, ge=2, le=50)
    start_date: datetime | None = None
    weeks: int | None = Field(None, ge=1, le=24)
    visibility: Visibility | None = None
    city: str | None = Field(None, max_length=100)


class MemberAddRequest(ApiModel):
    user_id: str = Field(..., min_length=1)
    role: MemberRole = "learner"


class CohortMemberResponse(ApiModel):
    user_id: str
    role: str
    joined_at: datetime
    user: UserSummary


class CohortResponse(ApiModel):
    id: str
    title: str
    owner_id: str
    size: int
    start_date: datetime
    weeks: int
    visibility: str
    city: str | None = None
    created_at: datetime


class CohortDetailResponse(CohortResponse):
    members: list[CohortMemberResponse]


class CohortListResponse(ApiModel):
    cohorts: list[CohortResponse]


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class SessionCreateRequest(ApiModel):
    cohort_id: str
    week_index: int = Field(..., ge=0)
    starts_at: datetime
    duration_minutes: int = Field(60, ge=15, le=240)
    notes_url: HttpUrlStr | None = None


class SessionResponse(ApiModel):
    id: str
    cohort_id: str
    week_index: int
    starts_at: datetime
    duration_minutes: int
    notes_url: str | None = None
    attendee_count: int


class SessionListResponse(ApiModel):
    sessions: list[SessionResponse]
