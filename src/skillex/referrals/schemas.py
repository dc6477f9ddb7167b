"""Request/response schemas for referrals."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from skillex.schemas import ApiModel, UserSummary


class ReferralCreateRequest(ApiModel):
    to_user_id: str = Field(..., min_length=1)
    cohort_id: str = Field(..., min_length=1)
    context: str = Field(..., min_length=1, max_length=500)
    status: Literal["draft", "sent"] = "draft"


class ReferralResponse(ApiModel):
    id: str
    from_user_id: str
    to_user_id: str
    cohort_id: str
    context: str
    status: str
    created_at: datetime
    from_user: UserSummary | None = None
    to_user: UserSummary | None = None


class ReferralListResponse(ApiModel):
    sent: list[ReferralResponse]
    received: list[ReferralResponse]
    pending: int
    completed: int


class ReferralEligibilityResponse(ApiModel):
    cohort_id: str
    cohort_title: str
    session_completion_percentage: int
    is_eligible: bool
    total_members: int
    sessions_completed: int
    total_sessions: int
    threshold: int
