"""Leave service layer — applications, the approval transaction, balances.

Business logic:
  - Leave application with date-range and overlap validation
  - Approval/rejection as one database transaction: a status change guarded
    on ``status = 'pending'`` plus, for approved annual/sick/personal leave,
    a guarded deduction from the requester's balance row
  - Reviewer scoping: HR/admin review anyone, managers their direct reports,
    nobody their own request
  - Direct balance overrides by HR/admin
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vibeflow.common.audit import create_audit_entry
from vibeflow.common.constants import (
    BALANCE_LEAVE_TYPES,
    TERMINAL_STATUSES,
    LeaveStatus,
    LeaveType,
    can_review,
    can_view,
    has_permission,
)
from vibeflow.common.exceptions import (
    ConflictError,
    ForbiddenException,
    InternalConsistencyError,
    NotFoundException,
    ValidationException,
)
from vibeflow.leave.models import LeaveBalance, LeaveRequest
from vibeflow.leave.schemas import LeaveBalanceUpdate, LeaveRequestCreate, LeaveRequestOut
from vibeflow.profiles.models import Profile

logger = logging.getLogger(__name__)

_REVIEW_ACTIONS = {LeaveStatus.approved: "approve", LeaveStatus.rejected: "reject"}


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave operations: requests, approvals, balances."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _build_request_response(req: LeaveRequest) -> LeaveRequestOut:
        """Build LeaveRequestOut from ORM, adding the requester name if loaded."""
        out = LeaveRequestOut.model_validate(req)
        requester = req.__dict__.get("requester")
        if requester is not None:
            out.requester_name = requester.name
        return out

    @staticmethod
    async def _load_request(db: AsyncSession, leave_id: uuid.UUID) -> LeaveRequest:
        result = await db.execute(
            select(LeaveRequest)
            .where(LeaveRequest.id == leave_id)
            .options(selectinload(LeaveRequest.requester))
        )
        leave_req = result.scalars().first()
        if leave_req is None:
            raise NotFoundException("LeaveRequest", str(leave_id))
        return leave_req

    # ─────────────────────────────────────────────────────────────────
    # Apply Leave
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def apply_leave(
        db: AsyncSession,
        requester: Profile,
        data: LeaveRequestCreate,
    ) -> LeaveRequestOut:
        """Create a pending leave request for *requester*.

        Rejects ranges overlapping another pending or approved request.
        Balance sufficiency is checked when the request is approved.
        """
        overlap_result = await db.execute(
            select(func.count()).select_from(LeaveRequest).where(
                LeaveRequest.user_id == requester.id,
                LeaveRequest.status.in_([LeaveStatus.pending, LeaveStatus.approved]),
                LeaveRequest.start_date <= data.end_date,
                LeaveRequest.end_date >= data.start_date,
            )
        )
        if overlap_result.scalar_one() > 0:
            raise ValidationException(
                {"dates": [
                    "You already have a pending or approved leave request "
                    "overlapping with these dates."
                ]}
            )

        leave_request = LeaveRequest(
            user_id=requester.id,
            type=data.type,
            start_date=data.start_date,
            end_date=data.end_date,
            reason=data.reason,
            status=LeaveStatus.pending,
        )
        db.add(leave_request)
        await db.flush()
        await db.commit()

        logger.info(
            "Leave %s submitted by %s: %s, %d day(s)",
            leave_request.id, requester.id, data.type.value, leave_request.total_days,
        )
        out = LeaveService._build_request_response(leave_request)
        out.requester_name = requester.name
        return out

    # ─────────────────────────────────────────────────────────────────
    # Read
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_leave(
        db: AsyncSession,
        leave_id: uuid.UUID,
        viewer: Profile,
    ) -> LeaveRequestOut:
        leave_req = await LeaveService._load_request(db, leave_id)
        if not can_view(viewer, leave_req.requester, domain="leave"):
            raise ForbiddenException("You are not allowed to view this leave request.")
        return LeaveService._build_request_response(leave_req)

    @staticmethod
    async def list_user_leaves(
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        status: Optional[LeaveStatus] = None,
    ) -> list[LeaveRequestOut]:
        """All leave requests of one profile, newest first."""
        query = (
            select(LeaveRequest)
            .where(LeaveRequest.user_id == user_id)
            .options(selectinload(LeaveRequest.requester))
            .order_by(LeaveRequest.created_at.desc())
        )
        if status:
            query = query.where(LeaveRequest.status == status)
        result = await db.execute(query)
        return [LeaveService._build_request_response(r) for r in result.scalars().all()]

    @staticmethod
    async def list_pending(
        db: AsyncSession,
        reviewer: Profile,
    ) -> list[LeaveRequestOut]:
        """Pending requests *reviewer* may decide on, newest first.

        HR/admin see every pending request; managers see their direct reports'.
        """
        query = (
            select(LeaveRequest)
            .join(Profile, LeaveRequest.user_id == Profile.id)
            .where(
                LeaveRequest.status == LeaveStatus.pending,
                LeaveRequest.user_id != reviewer.id,
            )
            .options(selectinload(LeaveRequest.requester))
            .order_by(LeaveRequest.created_at.desc())
        )
        if not has_permission(reviewer.role, "leave:read_all"):
            query = query.where(Profile.manager_id == reviewer.id)

        result = await db.execute(query)
        return [LeaveService._build_request_response(r) for r in result.scalars().all()]

    # ─────────────────────────────────────────────────────────────────
    # Approval transaction
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def update_status(
        db: AsyncSession,
        leave_id: uuid.UUID,
        status: LeaveStatus,
        reviewer: Profile,
        *,
        remarks: Optional[str] = None,
    ) -> LeaveRequestOut:
        """Approve or reject a pending leave request.

        The status change and, for approved annual/sick/personal leave, the
        balance deduction commit together or not at all. Any failure rolls
        the session back before the error propagates.

        Raises:
            ValidationException: status is not terminal, the inclusive day
                count is not positive, or the balance is insufficient (400).
            ForbiddenException: *reviewer* may not decide on this request (403).
            NotFoundException: no such leave request (404).
            ConflictError: the request has already been reviewed (409).
            InternalConsistencyError: the requester has no balance row (500).
        """
        if status not in TERMINAL_STATUSES:
            raise ValidationException(
                {"status": ["status must be 'approved' or 'rejected'."]}
            )

        now = datetime.now(timezone.utc)
        try:
            leave_req = await LeaveService._load_request(db, leave_id)
            if not can_review(reviewer, leave_req.requester, domain="leave"):
                raise ForbiddenException(
                    "You are not authorized to review this leave request."
                )

            # 1. Status transition, guarded against a concurrent review
            result = await db.execute(
                update(LeaveRequest)
                .where(
                    LeaveRequest.id == leave_id,
                    LeaveRequest.status == LeaveStatus.pending,
                )
                .values(
                    status=status,
                    reviewed_by=reviewer.id,
                    reviewed_at=now,
                    remarks=remarks,
                )
            )
            if result.rowcount == 0:
                raise ConflictError(
                    "Leave request has already been reviewed.",
                    errors={"status": [f"Current status is '{leave_req.status.value}'."]},
                )

            # 2. Balance deduction for approved paid leave
            days = leave_req.total_days
            if status == LeaveStatus.approved:
                if days <= 0:
                    raise ValidationException(
                        {"dates": [
                            f"Leave spans {days} day(s); end_date precedes start_date."
                        ]}
                    )
                if leave_req.type in BALANCE_LEAVE_TYPES:
                    await LeaveService._deduct_balance(
                        db, leave_req.user_id, leave_req.type, days, now,
                    )

            await create_audit_entry(
                db,
                action=_REVIEW_ACTIONS[status],
                entity_type="leave",
                entity_id=leave_req.id,
                actor_id=reviewer.id,
                old_values={"status": LeaveStatus.pending.value},
                new_values={
                    "status": status.value,
                    "remarks": remarks,
                    "days_deducted": (
                        days
                        if status == LeaveStatus.approved
                        and leave_req.type in BALANCE_LEAVE_TYPES
                        else 0
                    ),
                },
            )
            await db.commit()
        except Exception as exc:
            await db.rollback()
            logger.warning("Review of leave %s rolled back: %s", leave_id, exc)
            raise

        logger.info(
            "Leave %s %s by %s (%s, %d day(s))",
            leave_id, status.value, reviewer.id, leave_req.type.value, days,
        )
        return LeaveService._build_request_response(leave_req)

    @staticmethod
    async def _deduct_balance(
        db: AsyncSession,
        user_id: uuid.UUID,
        leave_type: LeaveType,
        days: int,
        now: datetime,
    ) -> None:
        """Subtract *days* from the *leave_type* counter of *user_id*.

        The update only matches when the counter covers *days*, so the
        counter never goes negative.
        """
        column = getattr(LeaveBalance, leave_type.value)
        result = await db.execute(
            update(LeaveBalance)
            .where(LeaveBalance.user_id == user_id, column >= days)
            .values({leave_type.value: column - days, "updated_at": now})
        )
        if result.rowcount == 1:
            return

        available = (
            await db.execute(select(column).where(LeaveBalance.user_id == user_id))
        ).scalar_one_or_none()
        if available is None:
            raise InternalConsistencyError(
                f"Profile '{user_id}' has no leave balance row."
            )
        raise ValidationException(
            {"balance": [
                f"Insufficient {leave_type.value} leave balance. "
                f"Available: {available}, Requested: {days}."
            ]}
        )

    # ─────────────────────────────────────────────────────────────────
    # Balances
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_balance(db: AsyncSession, user_id: uuid.UUID) -> LeaveBalance:
        profile_check = await db.execute(select(Profile.id).where(Profile.id == user_id))
        if profile_check.scalar() is None:
            raise NotFoundException("Profile", str(user_id))

        result = await db.execute(
            select(LeaveBalance).where(LeaveBalance.user_id == user_id)
        )
        balance = result.scalars().first()
        if balance is None:
            raise InternalConsistencyError(
                f"Profile '{user_id}' has no leave balance row."
            )
        return balance

    @staticmethod
    async def update_balance(
        db: AsyncSession,
        user_id: uuid.UUID,
        data: LeaveBalanceUpdate,
        actor_id: uuid.UUID,
    ) -> LeaveBalance:
        """HR/admin override of balance counters; independent of approvals."""
        balance = await LeaveService.get_balance(db, user_id)
        changes = data.model_dump(exclude_none=True)

        old_values = {field: getattr(balance, field) for field in changes}
        for field, value in changes.items():
            setattr(balance, field, value)
        balance.updated_at = datetime.now(timezone.utc)
        await db.flush()

        await create_audit_entry(
            db,
            action="override",
            entity_type="leave_balance",
            entity_id=user_id,
            actor_id=actor_id,
            old_values=old_values,
            new_values=changes,
        )
        await db.commit()

        logger.info("Leave balance of %s overridden by %s: %s", user_id, actor_id, changes)
        return balance
