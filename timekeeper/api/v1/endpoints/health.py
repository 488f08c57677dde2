"""
Health & status endpoints.
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.api.v1.deps import get_current_active_user, get_db
from timekeeper.core.config import settings
from timekeeper.core.timeutil import day_key, utcnow
from timekeeper.models.attendance import AttendanceRecord
from timekeeper.models.correction import CorrectionRequest
from timekeeper.models.enums import CorrectionStatus, TimeExceptionStatus
from timekeeper.models.time_exception import TimeException
from timekeeper.models.user import User
from timekeeper.schemas.attendance import HealthResponse, StatusResponse

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Public health check: DB and Redis connectivity."""
    result = HealthResponse(db=False, redis=False)

    try:
        await db.execute(select(1))
        result.db = True
    except Exception as e:
        logger.error("Health check DB failure: %s", e)

    try:
        r = aioredis.from_url(settings.REDIS_URL)
        await r.ping()
        await r.aclose()
        result.redis = True
    except Exception as e:
        logger.error("Health check Redis failure: %s", e)

    return result


@router.get("/status", response_model=StatusResponse)
async def system_status(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> StatusResponse:
    """Today's record count and the open review queues."""
    today = day_key(utcnow().date())

    records = await db.execute(
        select(func.count(AttendanceRecord.id)).where(AttendanceRecord.date == today)
    )
    corrections = await db.execute(
        select(func.count(CorrectionRequest.id)).where(
            CorrectionRequest.status.in_(
                [CorrectionStatus.SUBMITTED.value, CorrectionStatus.IN_REVIEW.value, CorrectionStatus.ESCALATED.value]
            )
        )
    )
    exceptions = await db.execute(
        select(func.count(TimeException.id)).where(
            TimeException.status.in_(
                [TimeExceptionStatus.OPEN.value, TimeExceptionStatus.PENDING.value, TimeExceptionStatus.ESCALATED.value]
            )
        )
    )

    return StatusResponse(
        today_records=records.scalar() or 0,
        open_corrections=corrections.scalar() or 0,
        open_exceptions=exceptions.scalar() or 0,
        status="operational",
    )
