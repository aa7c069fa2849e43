"""Code Relay API - FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map CodeShuffleError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database, judge client and settings cache initialized in the lifespan;
      the rotation scheduler only when server_timers_enabled is set

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Scheduler shares the request engine's collaborators, so client-driven
      and timer-driven rotations go through the same code path
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from codeshuffle.api.error_handlers import register_error_handlers
from codeshuffle.api.routes import (
    admin_event, admin_problems, admin_teams, health, student,
)
from codeshuffle.config import get_settings
from codeshuffle.core.event_settings import EventSettings
from codeshuffle.infrastructure.database import init_db
from codeshuffle.infrastructure.judge_client import init_judge
from codeshuffle.infrastructure.observability import setup_logging
from codeshuffle.services.round_engine import RoundEngine
from codeshuffle.services.rotation_scheduler import init_scheduler
from codeshuffle.services.settings_cache import (
    init_settings_cache, session_loader,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    judge = init_judge(
        settings.judge_api_url,
        api_key=settings.judge_api_key,
        timeout_seconds=settings.judge_timeout_seconds,
        max_retries=settings.judge_max_retries,
        base_delay_ms=settings.judge_base_delay_ms,
        max_delay_ms=settings.judge_max_delay_ms,
    )
    defaults = EventSettings(
        rotation_interval_seconds=settings.default_rotation_interval_seconds,
        event_duration_seconds=settings.default_event_duration_seconds,
    )
    cache = init_settings_cache(
        session_loader(manager.session, defaults),
        settings.settings_cache_ttl_seconds,
    )

    scheduler = None
    if settings.server_timers_enabled:
        scheduler = init_scheduler(
            manager.session,
            lambda db: RoundEngine(
                db, cache, judge,
                listener=scheduler,
                cpu_time_limits=settings.judge_cpu_time_limits,
            ),
            cache,
            idle_seconds=settings.scheduler_idle_seconds,
        )
        await scheduler.start()

    logger.info("Code Relay API started")
    yield
    logger.info("Code Relay API shutting down")
    if scheduler is not None:
        await scheduler.stop()
    await judge.aclose()
    await manager.dispose()


app = FastAPI(
    title="Code Relay API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(student.router)
app.include_router(admin_teams.router)
app.include_router(admin_problems.router)
app.include_router(admin_event.router)

register_error_handlers(app)
