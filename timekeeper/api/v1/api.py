"""
V1 API router aggregator: wires all endpoint modules together.
"""

from fastapi import APIRouter

from timekeeper.api.v1.endpoints import (attendance, auth, catalog,
                                         corrections, exceptions, health,
                                         shifts)

api_router = APIRouter()

# Auth (login, current user, user management)
api_router.include_router(auth.router)

# Correction requests
api_router.include_router(corrections.router)

# Clock events, direct corrections, reports
api_router.include_router(attendance.router)

# Shift assignments and the catalog
api_router.include_router(shifts.router)
api_router.include_router(catalog.router)

# Time exceptions
api_router.include_router(exceptions.router)

# Health, status
api_router.include_router(health.router)
