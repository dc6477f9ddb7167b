"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI

from skillex.artifacts.router import router as artifacts_router
from skillex.auth.jwks import JWKSCache, http_fetcher
from skillex.availability.router import router as availability_router
from skillex.cohorts.router import router as cohorts_router
from skillex.config import get_settings
from skillex.connections.router import router as connections_router
from skillex.database import close_db, init_db
from skillex.endorsements.router import router as endorsements_router
from skillex.feedback.router import router as feedback_router
from skillex.health.router import router as health_router
from skillex.match.router import router as match_router
from skillex.messages.router import router as messages_router
from skillex.middleware import setup_middleware
from skillex.notifications.router import router as notifications_router
from skillex.redis_client import close_redis, init_redis
from skillex.referrals.router import router as referrals_router
from skillex.skills.router import router as skills_router
from skillex.users.router import router as users_router


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.redis_url:
        await init_redis(settings.redis_url)
    structlog.get_logger().info("startup", environment=settings.environment, version=settings.app_version)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="SkillEx API",
        description="Backend API for SkillEx — a professional skill-exchange network",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.jwks_cache = JWKSCache(
        settings.jwks_url,
        ttl_seconds=settings.jwks_cache_ttl_seconds,
        requests_per_minute=settings.jwks_requests_per_minute,
        fetcher=http_fetcher(settings.jwks_fetch_timeout_seconds),
    )

    setup_middleware(app, settings)
    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(availability_router)
    app.include_router(skills_router)
    app.include_router(connections_router)
    app.include_router(cohorts_router)
    app.include_router(messages_router)
    app.include_router(artifacts_router)
    app.include_router(feedback_router)
    app.include_router(endorsements_router)
    app.include_router(referrals_router)
    app.include_router(notifications_router)
    app.include_router(match_router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "skillex.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_config=None,
    )
