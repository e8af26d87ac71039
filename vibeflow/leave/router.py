"""Leave router — apply, approve/reject, balances.

All endpoints require authentication. Reviewer and HR-specific endpoints
enforce permission checks.
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vibeflow.auth.dependencies import get_current_user, require_permission
from vibeflow.common.constants import LeaveStatus, has_permission
from vibeflow.common.exceptions import ForbiddenException
from vibeflow.common.pagination import PaginatedResponse, PaginationParams
from vibeflow.database import get_db
from vibeflow.leave.schemas import (
    LeaveBalanceOut,
    LeaveBalanceUpdate,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveStatusUpdate,
)
from vibeflow.leave.service import LeaveService
from vibeflow.profiles.models import Profile
from vibeflow.profiles.schemas import ProfileOut
from vibeflow.profiles.service import ProfileService

router = APIRouter(prefix="", tags=["leave"])
balances_router = APIRouter(prefix="", tags=["leave-balances"])


# ── POST / ──────────────────────────────────────────────────────────

@router.post("", response_model=LeaveRequestOut, status_code=201)
async def apply_leave(
    body: LeaveRequestCreate,
    profile: Profile = Depends(require_permission("leave:request")),
    db: AsyncSession = Depends(get_db),
):
    """Apply for leave. Balance is checked when the request is approved."""
    return await LeaveService.apply_leave(db, profile, body)


# ── GET /my-leaves ──────────────────────────────────────────────────

@router.get("/my-leaves", response_model=list[LeaveRequestOut])
async def my_leaves(
    status: Optional[LeaveStatus] = Query(None),
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The caller's leave requests, newest first."""
    return await LeaveService.list_user_leaves(db, profile.id, status=status)


# ── GET /pending ────────────────────────────────────────────────────

@router.get("/pending", response_model=list[LeaveRequestOut])
async def pending_leaves(
    profile: Profile = Depends(require_permission("leave:review")),
    db: AsyncSession = Depends(get_db),
):
    """Pending requests awaiting the caller's decision."""
    return await LeaveService.list_pending(db, profile)


# ── GET /{leave_id} ─────────────────────────────────────────────────

@router.get("/{leave_id}", response_model=LeaveRequestOut)
async def get_leave(
    leave_id: uuid.UUID,
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_leave(db, leave_id, profile)


# ── PUT /{leave_id}/status ──────────────────────────────────────────

@router.put("/{leave_id}/status", response_model=LeaveRequestOut)
async def review_leave(
    leave_id: uuid.UUID,
    body: LeaveStatusUpdate,
    profile: Profile = Depends(require_permission("leave:review")),
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject a pending request; approval deducts the balance."""
    return await LeaveService.update_status(
        db, leave_id, body.status, profile, remarks=body.remarks,
    )


# ═════════════════════════════════════════════════════════════════════
# /leave-balances
# ═════════════════════════════════════════════════════════════════════


@balances_router.get("", response_model=PaginatedResponse[ProfileOut])
async def list_balances(
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(),
    profile: Profile = Depends(require_permission("balance:read_all")),
    db: AsyncSession = Depends(get_db),
):
    """All profiles with their balance rows."""
    return await ProfileService.list_profiles(db, pagination, search=search)


@balances_router.get("/{user_id}", response_model=LeaveBalanceOut)
async def get_balance(
    user_id: uuid.UUID,
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if user_id != profile.id and not has_permission(profile.role, "balance:read_all"):
        raise ForbiddenException("You can only view your own leave balance.")
    return LeaveBalanceOut.model_validate(await LeaveService.get_balance(db, user_id))


@balances_router.put("/{user_id}", response_model=LeaveBalanceOut)
async def update_balance(
    user_id: uuid.UUID,
    body: LeaveBalanceUpdate,
    profile: Profile = Depends(require_permission("balance:update")),
    db: AsyncSession = Depends(get_db),
):
    """Direct override of balance counters (HR/admin)."""
    balance = await LeaveService.update_balance(db, user_id, body, profile.id)
    return LeaveBalanceOut.model_validate(balance)
