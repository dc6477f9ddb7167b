"""Authenticated principal attached to each request."""

from __future__ import annotations

from pydantic import BaseModel


class AuthUser(BaseModel):
    """Identity extracted from a verified JWT."""

    id: str
    email: str | None = None
    role: str | None = None
