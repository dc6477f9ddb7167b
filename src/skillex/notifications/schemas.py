"""Notification response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from skillex.schemas import ApiModel


class NotificationResponse(ApiModel):
    id: str
    kind: str
    payload: dict[str, Any]
    read_at: datetime | None = None
    created_at: datetime


class NotificationListResponse(ApiModel):
    notifications: list[NotificationResponse]
