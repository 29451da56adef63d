"""FastAPI application factory."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from agora.achievements.auto_claim import AutoClaimScheduler
from agora.admin.router import router as admin_router
from agora.auth.router import router as auth_router
from agora.chain.executor import close_executor, init_executor
from agora.config import get_settings
from agora.database import close_db, get_session_factory, init_db
from agora.health.router import router as health_router
from agora.middleware import setup_middleware
from agora.profile.router import router as profile_router
from agora.redis_client import close_redis, init_redis
from agora.tasks.router import router as tasks_router
from agora.users.router import router as users_router

logger = structlog.get_logger()

# Time for a claim in flight to be recorded after the executor returns.
SCHEDULER_SHUTDOWN_GRACE_SECONDS = 10.0


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)
    executor = init_executor(settings)

    scheduler: AutoClaimScheduler | None = None
    scheduler_task: asyncio.Task[None] | None = None
    if settings.auto_claim_enabled:
        scheduler = AutoClaimScheduler(get_session_factory(), executor, settings)
        scheduler_task = asyncio.create_task(scheduler.start())

    logger.info("app_started", environment=settings.environment, network=settings.sui_network)
    yield

    if scheduler is not None and scheduler_task is not None:
        grace = settings.executor_timeout_seconds + SCHEDULER_SHUTDOWN_GRACE_SECONDS
        await scheduler.shutdown(scheduler_task, timeout=grace)

    await close_executor()
    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Agora API",
        description="Backend API for Agora: community tasks, votes and donations recorded on Sui",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(profile_router)
    app.include_router(tasks_router)
    app.include_router(admin_router)

    return app


app = create_app()
