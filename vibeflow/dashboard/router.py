"""Dashboard router — read-only summary for the caller's home page."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vibeflow.auth.dependencies import get_current_user
from vibeflow.dashboard.schemas import DashboardSummaryResponse
from vibeflow.dashboard.service import DashboardService
from vibeflow.database import get_db
from vibeflow.profiles.models import Profile

router = APIRouter()


# ── GET /summary ────────────────────────────────────────────────────

@router.get("/summary", response_model=DashboardSummaryResponse)
async def dashboard_summary(
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Balance, pending counts, five most recent leaves and expenses, and
    for reviewers the size of their review queue."""
    return await DashboardService.get_summary(db, profile)
