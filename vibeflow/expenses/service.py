"""Expenses service layer — claims and the review workflow."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vibeflow.common.audit import create_audit_entry
from vibeflow.common.constants import (
    TERMINAL_STATUSES,
    ExpenseStatus,
    can_review,
    can_view,
    has_permission,
)
from vibeflow.common.exceptions import (
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from vibeflow.expenses.models import ExpenseRequest
from vibeflow.expenses.schemas import ExpenseCreate, ExpenseOut
from vibeflow.profiles.models import Profile

logger = logging.getLogger(__name__)


class ExpenseService:
    """Business logic for expense claim operations."""

    @staticmethod
    def _to_out(expense: ExpenseRequest) -> ExpenseOut:
        out = ExpenseOut.model_validate(expense)
        requester = expense.__dict__.get("requester")
        if requester is not None:
            out.requester_name = requester.name
        return out

    @staticmethod
    async def _load(db: AsyncSession, expense_id: uuid.UUID) -> ExpenseRequest:
        result = await db.execute(
            select(ExpenseRequest)
            .where(ExpenseRequest.id == expense_id)
            .options(selectinload(ExpenseRequest.requester))
        )
        expense = result.scalars().first()
        if expense is None:
            raise NotFoundException("ExpenseRequest", str(expense_id))
        return expense

    # ── Create ────────────────────────────────────────────────────────

    @staticmethod
    async def create_expense(
        db: AsyncSession,
        requester: Profile,
        data: ExpenseCreate,
    ) -> ExpenseOut:
        expense = ExpenseRequest(
            user_id=requester.id,
            type=data.type,
            amount=data.amount,
            description=data.description,
            expense_date=data.expense_date,
            status=ExpenseStatus.pending,
        )
        db.add(expense)
        await db.flush()
        await db.commit()

        logger.info(
            "Expense %s submitted by %s: %s %s",
            expense.id, requester.id, data.type.value, data.amount,
        )
        out = ExpenseService._to_out(expense)
        out.requester_name = requester.name
        return out

    # ── Read ──────────────────────────────────────────────────────────

    @staticmethod
    async def get_expense(
        db: AsyncSession,
        expense_id: uuid.UUID,
        viewer: Profile,
    ) -> ExpenseOut:
        expense = await ExpenseService._load(db, expense_id)
        if not can_view(viewer, expense.requester, domain="expense"):
            raise ForbiddenException("You are not allowed to view this expense.")
        return ExpenseService._to_out(expense)

    @staticmethod
    async def list_user_expenses(
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        status: Optional[ExpenseStatus] = None,
    ) -> list[ExpenseOut]:
        query = (
            select(ExpenseRequest)
            .where(ExpenseRequest.user_id == user_id)
            .options(selectinload(ExpenseRequest.requester))
            .order_by(ExpenseRequest.created_at.desc())
        )
        if status:
            query = query.where(ExpenseRequest.status == status)
        result = await db.execute(query)
        return [ExpenseService._to_out(e) for e in result.scalars().all()]

    @staticmethod
    async def list_pending(
        db: AsyncSession,
        reviewer: Profile,
    ) -> list[ExpenseOut]:
        """Pending claims *reviewer* may decide on, newest first."""
        query = (
            select(ExpenseRequest)
            .join(Profile, ExpenseRequest.user_id == Profile.id)
            .where(
                ExpenseRequest.status == ExpenseStatus.pending,
                ExpenseRequest.user_id != reviewer.id,
            )
            .options(selectinload(ExpenseRequest.requester))
            .order_by(ExpenseRequest.created_at.desc())
        )
        if not has_permission(reviewer.role, "expense:read_all"):
            query = query.where(Profile.manager_id == reviewer.id)

        result = await db.execute(query)
        return [ExpenseService._to_out(e) for e in result.scalars().all()]

    # ── Review ────────────────────────────────────────────────────────

    @staticmethod
    async def update_status(
        db: AsyncSession,
        expense_id: uuid.UUID,
        status: ExpenseStatus,
        reviewer: Profile,
        *,
        remarks: Optional[str] = None,
    ) -> ExpenseOut:
        """Approve or reject a pending claim. No balance is involved."""
        if status not in TERMINAL_STATUSES:
            raise ValidationException(
                {"status": ["status must be 'approved' or 'rejected'."]}
            )

        try:
            expense = await ExpenseService._load(db, expense_id)
            if not can_review(reviewer, expense.requester, domain="expense"):
                raise ForbiddenException(
                    "You are not authorized to review this expense."
                )

            result = await db.execute(
                update(ExpenseRequest)
                .where(
                    ExpenseRequest.id == expense_id,
                    ExpenseRequest.status == ExpenseStatus.pending,
                )
                .values(
                    status=status,
                    reviewed_by=reviewer.id,
                    reviewed_at=datetime.now(timezone.utc),
                    remarks=remarks,
                )
            )
            if result.rowcount == 0:
                raise ConflictError(
                    "Expense has already been reviewed.",
                    errors={"status": [f"Current status is '{expense.status.value}'."]},
                )

            await create_audit_entry(
                db,
                action="approve" if status == ExpenseStatus.approved else "reject",
                entity_type="expense",
                entity_id=expense.id,
                actor_id=reviewer.id,
                old_values={"status": ExpenseStatus.pending.value},
                new_values={"status": status.value, "remarks": remarks},
            )
            await db.commit()
        except Exception as exc:
            await db.rollback()
            logger.warning("Review of expense %s rolled back: %s", expense_id, exc)
            raise

        logger.info("Expense %s %s by %s", expense_id, status.value, reviewer.id)
        return ExpenseService._to_out(expense)
