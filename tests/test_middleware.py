"""Middleware tests — request ID, rate limiting, CORS, error envelope."""

from typing import Any

import pytest
from fastapi import APIRouter
from httpx import ASGITransport, AsyncClient

from skillex.config import Settings
from skillex.main import create_app
from skillex.middleware.logging import service_context


class FakePipeline:
    def __init__(self, store: dict[str, int]) -> None:
        self.store = store
        self.ops: list[tuple[str, str]] = []

    def incr(self, key: str) -> None:
        self.ops.append(("incr", key))

    def expire(self, key: str, _seconds: int) -> None:
        self.ops.append(("expire", key))

    async def execute(self) -> list[Any]:
        results: list[Any] = []
        for op, key in self.ops:
            if op == "incr":
                self.store[key] = self.store.get(key, 0) + 1
                results.append(self.store[key])
            else:
                results.append(True)
        return results


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the rate limiter."""

    def __init__(self) -> None:
        self.store: dict[str, int] = {}

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self.store)


@pytest.fixture
def fake_redis(monkeypatch: pytest.MonkeyPatch) -> FakeRedis:
    redis = FakeRedis()
    monkeypatch.setattr("skillex.middleware.rate_limit.get_redis", lambda: redis)
    return redis


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/v1/health")
    assert "x-request-id" in response.headers
    assert len(response.headers["x-request-id"]) == 36  # UUID format


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    """Custom request ID is echoed back in response."""
    response = await client.get("/v1/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


@pytest.mark.asyncio
async def test_no_rate_limit_without_redis(client: AsyncClient) -> None:
    response = await client.get("/v1/users/nobody")
    assert "x-ratelimit-limit" not in response.headers


@pytest.mark.asyncio
async def test_rate_limit_headers(client: AsyncClient, fake_redis: FakeRedis) -> None:
    """Rate limit headers are present on non-exempt endpoints."""
    response = await client.get("/v1/users/nobody")
    assert response.headers["x-ratelimit-limit"] == "100"
    assert response.headers["x-ratelimit-remaining"] == "99"


@pytest.mark.asyncio
async def test_rate_limit_blocks_excess(client: AsyncClient, fake_redis: FakeRedis) -> None:
    """101st request returns 429 with Retry-After header and the error envelope."""
    for _ in range(100):
        await client.get("/v1/users/nobody")
    response = await client.get("/v1/users/nobody")
    assert response.status_code == 429
    assert "retry-after" in response.headers
    assert response.json()["code"] == "RATE_LIMITED"


@pytest.mark.asyncio
async def test_health_exempt_from_rate_limit(client: AsyncClient, fake_redis: FakeRedis) -> None:
    """Health endpoint is exempt from rate limiting."""
    for _ in range(150):
        response = await client.get("/v1/health")
        assert response.status_code == 200
    assert fake_redis.store == {}


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient) -> None:
    """CORS preflight returns access-control-allow-origin for configured origin."""
    response = await client.options(
        "/v1/availability",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "PUT",
        },
    )
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"


@pytest.mark.asyncio
async def test_404_returns_envelope(client: AsyncClient) -> None:
    """Unknown paths return the error envelope."""
    response = await client.get("/nonexistent-path")
    assert response.status_code == 404
    assert response.json() == {"code": "NOT_FOUND", "message": "Not Found"}


@pytest.mark.asyncio
async def test_405_returns_envelope(client: AsyncClient) -> None:
    response = await client.delete("/v1/health")
    assert response.status_code == 405
    assert response.json()["code"] == "METHOD_NOT_ALLOWED"


@pytest.mark.asyncio
async def test_validation_error_envelope(authed_client: AsyncClient) -> None:
    response = await authed_client.post("/v1/cohorts", json={"title": "x"})
    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    fields = {e["field"] for e in data["details"]["errors"]}
    assert {"title", "startDate"} <= fields


@pytest.mark.asyncio
async def test_500_returns_generic_envelope(client: AsyncClient) -> None:
    """Unhandled errors become INTERNAL_ERROR without leaking the cause."""
    app = create_app()
    boom = APIRouter()

    @boom.get("/v1/boom")
    async def explode() -> None:
        msg = "database password is hunter2"
        raise RuntimeError(msg)

    app.include_router(boom)
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/v1/boom")

    assert response.status_code == 500
    assert response.json() == {"code": "INTERNAL_ERROR", "message": "Internal server error"}


class TestLogContext:
    def test_service_fields_added(self):
        processor = service_context(Settings(service_name="skillex-api", app_version="9.9.9", environment="production"))
        event = processor(None, "info", {"event": "startup"})
        assert event == {
            "event": "startup",
            "service": "skillex-api",
            "version": "9.9.9",
            "environment": "production",
        }

    def test_explicit_fields_win(self):
        processor = service_context(Settings(environment="development"))
        event = processor(None, "info", {"event": "startup", "environment": "staging"})
        assert event["environment"] == "staging"
        assert event["service"] == "skillex-api"
