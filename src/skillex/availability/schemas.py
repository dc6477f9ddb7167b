"""Request/response schemas for availability endpoints."""

from __future__ import annotations

from pydantic import Field, StrictBool

from skillex.availability.week_mask import WEEK_SLOTS
from skillex.schemas import ApiModel


class AvailabilityUpdateRequest(ApiModel):
    """The whole week, replacing whatever was stored."""

    week_mask: list[StrictBool] = Field(..., min_length=WEEK_SLOTS, max_length=WEEK_SLOTS)


class AvailabilityResponse(ApiModel):
    user_id: str
    week_mask: list[bool]


class TimeBlockResponse(ApiModel):
    start: int
    end: int


class DayAvailabilityResponse(ApiModel):
    day: int
    day_name: str
    blocks: list[TimeBlockResponse]
    total_slots: int


class PublicAvailabilityResponse(AvailabilityResponse):
    days: list[DayAvailabilityResponse]
