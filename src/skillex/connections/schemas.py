"""Request/response schemas for connections."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from skillex.schemas import ApiModel, UserSummary

ConnectionStatus = Literal["pending", "accepted", "blocked"]


class ConnectionRequestCreate(ApiModel):
    addressee_id: str


class ConnectionResponse(ApiModel):
    id: str
    requester_id: str
    addressee_id: str
    status: str
    created_at: datetime
    other_user: UserSummary | None = None


class ConnectionListResponse(ApiModel):
    connections: list[ConnectionResponse]
