"""Dashboard API — read-only views over the classroom spreadsheet.

The signed-in user is forwarded by the gateway in ``X-User-*`` headers and
resolved per request; every call recomputes from a fresh snapshot.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from errors.exceptions import IdentityNotFoundError
from models.dashboard import (
    IntegrityResponse,
    LeaderboardResponse,
    RosterResponse,
    StudentDashboard,
    TeacherDashboard,
)
from services.collection_store import CollectionStore, get_collection_store
from services.dashboard_service import (
    load_gamification_roster,
    load_integrity_report,
    load_leaderboard,
    load_student_dashboard,
    load_teacher_dashboard,
)
from services.identity import DashboardContext, HeaderIdentityProvider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["dashboard"])


def get_context(request: Request) -> DashboardContext:
    return DashboardContext.from_provider(HeaderIdentityProvider(request.headers))


@router.get("/dashboard/teacher", response_model=TeacherDashboard)
async def teacher_dashboard(
    context: DashboardContext = Depends(get_context),
    store: CollectionStore = Depends(get_collection_store),
):
    """Class, assignment, grade and attendance overview for a teacher."""
    return await load_teacher_dashboard(store, context)


@router.get("/dashboard/student", response_model=StudentDashboard)
async def student_dashboard(
    context: DashboardContext = Depends(get_context),
    store: CollectionStore = Depends(get_collection_store),
):
    """Progress, rank and badges for the signed-in student."""
    try:
        return await load_student_dashboard(store, context)
    except IdentityNotFoundError as e:
        logger.warning("Student dashboard requested without a user: %s", e)
        raise HTTPException(status_code=401, detail="session/user not found") from e


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    limit: int | None = Query(default=None, ge=0),
    store: CollectionStore = Depends(get_collection_store),
):
    entries, warnings = await load_leaderboard(store, limit=limit)
    return LeaderboardResponse(entries=entries, warnings=warnings)


@router.get("/gamification/roster", response_model=RosterResponse)
async def gamification_roster(store: CollectionStore = Depends(get_collection_store)):
    entries, warnings = await load_gamification_roster(store)
    return RosterResponse(entries=entries, warnings=warnings)


@router.get("/integrity", response_model=IntegrityResponse)
async def integrity(
    context: DashboardContext = Depends(get_context),
    store: CollectionStore = Depends(get_collection_store),
):
    """Orphaned-grade report; ``report`` is null when every grade resolves."""
    report, warnings = await load_integrity_report(store, context)
    return IntegrityResponse(report=report, warnings=warnings)
