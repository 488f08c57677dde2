"""
Timekeeper: Application entry point.

This is the **only** file that assembles the app.  Business rules live in
``rules/`` and ``services/``; HTTP in ``api/``; persistence in ``models/``
and ``db/``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import select

from timekeeper.api.v1.api import api_router
from timekeeper.api.v1.endpoints.auth import limiter
from timekeeper.core.config import settings
from timekeeper.core.exceptions import register_exception_handlers
from timekeeper.core.security import get_password_hash
from timekeeper.db.base import Base
from timekeeper.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from timekeeper.models.attendance import AttendancePunch, AttendanceRecord  # noqa: F401
from timekeeper.models.correction import CorrectionRequest  # noqa: F401
from timekeeper.models.holiday import Holiday  # noqa: F401
from timekeeper.models.rules import LatenessRule, OvertimeRule, ScheduleRule  # noqa: F401
from timekeeper.models.shift import Shift, ShiftAssignment  # noqa: F401
from timekeeper.models.time_exception import TimeException  # noqa: F401
from timekeeper.models.user import User
from timekeeper.services.reference_data import reference_data

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    # Seed default admin user on first run
    async with async_session_factory() as session:
        result = await session.execute(
            select(User).where(User.email == settings.FIRST_ADMIN_EMAIL)
        )
        if result.scalar_one_or_none() is None:
            admin = User(
                email=settings.FIRST_ADMIN_EMAIL,
                hashed_password=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
                full_name="System Administrator",
                role="admin",
            )
            session.add(admin)
            await session.commit()
            logger.info(
                "Default admin created: %s (password: <redacted>)",
                settings.FIRST_ADMIN_EMAIL,
            )

    # Leave / offboarding snapshots from the HR systems
    reference_data.load()

    logger.info("Timekeeper v%s started", settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Time & attendance core: punches, shifts, corrections, rules",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Login rate limiting
    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
