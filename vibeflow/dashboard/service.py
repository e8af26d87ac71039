"""Dashboard service — read-only aggregation for the caller's home page.

All methods are static async, following the project convention.
Counts run at DB level; recent lists are capped.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vibeflow.common.constants import RequestStatus, has_permission
from vibeflow.dashboard.schemas import DashboardSummaryResponse, ReviewQueueCounts
from vibeflow.expenses.models import ExpenseRequest
from vibeflow.expenses.schemas import ExpenseOut
from vibeflow.leave.models import LeaveRequest
from vibeflow.leave.schemas import LeaveBalanceOut, LeaveRequestOut
from vibeflow.profiles.models import Profile

RECENT_LIMIT = 5


class DashboardService:
    """Async dashboard aggregation queries."""

    @staticmethod
    async def _count_own_pending(db: AsyncSession, model, profile: Profile) -> int:
        result = await db.execute(
            select(func.count()).select_from(model).where(
                model.user_id == profile.id,
                model.status == RequestStatus.pending,
            )
        )
        return result.scalar_one()

    @staticmethod
    async def _count_review_queue(
        db: AsyncSession, model, reviewer: Profile, domain: str,
    ) -> int:
        query = (
            select(func.count())
            .select_from(model)
            .join(Profile, model.user_id == Profile.id)
            .where(
                model.status == RequestStatus.pending,
                model.user_id != reviewer.id,
            )
        )
        if not has_permission(reviewer.role, f"{domain}:read_all"):
            query = query.where(Profile.manager_id == reviewer.id)
        return (await db.execute(query)).scalar_one()

    @staticmethod
    async def _recent(db: AsyncSession, model, profile: Profile) -> list:
        result = await db.execute(
            select(model)
            .where(model.user_id == profile.id)
            .options(selectinload(model.requester))
            .order_by(model.created_at.desc())
            .limit(RECENT_LIMIT)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_summary(db: AsyncSession, profile: Profile) -> DashboardSummaryResponse:
        """Caller's balance, own pending counts, recent requests, review queue."""
        leaves = await DashboardService._recent(db, LeaveRequest, profile)
        expenses = await DashboardService._recent(db, ExpenseRequest, profile)

        recent_leaves = []
        for leave in leaves:
            out = LeaveRequestOut.model_validate(leave)
            out.requester_name = profile.name
            recent_leaves.append(out)
        recent_expenses = []
        for expense in expenses:
            out = ExpenseOut.model_validate(expense)
            out.requester_name = profile.name
            recent_expenses.append(out)

        awaiting_review = None
        if has_permission(profile.role, "leave:review"):
            awaiting_review = ReviewQueueCounts(
                leaves=await DashboardService._count_review_queue(
                    db, LeaveRequest, profile, "leave",
                ),
                expenses=await DashboardService._count_review_queue(
                    db, ExpenseRequest, profile, "expense",
                ),
            )

        return DashboardSummaryResponse(
            balance=(
                LeaveBalanceOut.model_validate(profile.leave_balance)
                if profile.leave_balance is not None
                else None
            ),
            pending_leaves=await DashboardService._count_own_pending(db, LeaveRequest, profile),
            pending_expenses=await DashboardService._count_own_pending(db, ExpenseRequest, profile),
            recent_leaves=recent_leaves,
            recent_expenses=recent_expenses,
            awaiting_review=awaiting_review,
        )
