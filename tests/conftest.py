"""Shared test fixtures.

Tests run against a throwaway SQLite database and an in-memory key set; the
JWKS cache on ``app.state`` is swapped for one whose fetcher serves the test
RSA key, so no network access is needed.
"""

from __future__ import annotations

import json
import time
from collections.abc import AsyncGenerator, Awaitable, Callable, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import jwt
import pytest
import pytest_asyncio
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from jwt.algorithms import RSAAlgorithm
from sqlalchemy.ext.asyncio import AsyncSession

from skillex.auth.jwks import JWKSCache
from skillex.database import close_db, get_engine, get_session, init_db
from skillex.db.base import Base
from skillex.db.models import Cohort, CohortMember, CohortSession, User
from skillex.main import create_app

TEST_KID = "test-key-1"
TEST_JWKS_URL = "https://auth.test/.well-known/jwks.json"

_private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _public_jwk(kid: str = TEST_KID) -> dict[str, Any]:
    jwk = json.loads(RSAAlgorithm.to_jwk(_private_key.public_key()))
    jwk.update({"kid": kid, "alg": "RS256", "use": "sig"})
    return jwk


class FakeJWKSFetcher:
    """Serves a fixed key set and counts calls."""

    def __init__(self, keys: list[dict[str, Any]] | None = None) -> None:
        self.keys = keys if keys is not None else [_public_jwk()]
        self.calls = 0

    async def __call__(self, url: str) -> dict[str, Any]:
        self.calls += 1
        return {"keys": self.keys}


def make_token(
    sub: str = "user-1",
    *,
    kid: str = TEST_KID,
    expires_in: int = 3600,
    key: Any = None,  # noqa: ANN401
    **claims: Any,
) -> str:
    """Sign a token the way the auth provider would."""
    now = int(time.time())
    payload: dict[str, Any] = {"sub": sub, "iat": now, "exp": now + expires_in, "role": "authenticated"}
    payload.update(claims)
    return jwt.encode(payload, key or _private_key, algorithm="RS256", headers={"kid": kid})


def auth_headers(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


@pytest.fixture
def jwks_fetcher() -> FakeJWKSFetcher:
    return FakeJWKSFetcher()


@pytest_asyncio.fixture
async def client(tmp_path: Path, jwks_fetcher: FakeJWKSFetcher) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against a fresh app and an empty database."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    app = create_app()
    app.state.jwks_cache = JWKSCache(TEST_JWKS_URL, fetcher=jwks_fetcher)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await close_db()


@pytest_asyncio.fixture
async def db_session(client: AsyncClient) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for arranging data and asserting on it."""
    async for session in get_session():
        yield session
        break


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Insert a profile directly."""

    async def _make(user_id: str, handle: str | None = None, **fields: Any) -> User:
        user = User(
            id=user_id,
            handle=handle or user_id.replace("-", "_"),
            full_name=fields.pop("full_name", f"Test {user_id}"),
            **fields,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest_asyncio.fixture
async def make_cohort(db_session: AsyncSession) -> Callable[..., Awaitable[Cohort]]:
    """Insert a cohort with members and, optionally, sessions at the given start times."""

    async def _make(
        owner_id: str,
        member_ids: Sequence[str] = (),
        *,
        weeks: int = 4,
        session_starts: Sequence[datetime] = (),
        visibility: str = "private",
        size: int = 10,
    ) -> Cohort:
        cohort = Cohort(
            title="Rust study group",
            owner_id=owner_id,
            size=size,
            start_date=datetime(2026, 1, 5, tzinfo=timezone.utc),
            weeks=weeks,
            visibility=visibility,
        )
        db_session.add(cohort)
        await db_session.flush()
        db_session.add(CohortMember(cohort_id=cohort.id, user_id=owner_id, role="facilitator"))
        for uid in member_ids:
            db_session.add(CohortMember(cohort_id=cohort.id, user_id=uid, role="learner"))
        for i, starts_at in enumerate(session_starts):
            db_session.add(CohortSession(cohort_id=cohort.id, week_index=i, starts_at=starts_at))
        await db_session.commit()
        return cohort

    return _make


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient, make_user: Callable[..., Awaitable[User]]) -> AsyncClient:
    """Client authenticated as ``user-1``, who already has a profile."""
    await make_user("user-1", "alice", full_name="Alice Example")
    client.headers["Authorization"] = f"Bearer {make_token('user-1')}"
    return client


@pytest.fixture
def token_factory() -> Callable[..., str]:
    """``token_factory(sub, kid=..., expires_in=..., key=..., **claims)``."""
    return make_token


@pytest.fixture
def public_jwk() -> dict[str, Any]:
    return _public_jwk()


@pytest.fixture
def other_private_key() -> rsa.RSAPrivateKey:
    """A key the auth provider never published."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)
