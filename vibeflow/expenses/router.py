"""Expenses router — submit claims, list them, approve or reject."""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vibeflow.auth.dependencies import get_current_user, require_permission
from vibeflow.common.constants import ExpenseStatus
from vibeflow.database import get_db
from vibeflow.expenses.schemas import ExpenseCreate, ExpenseOut, ExpenseStatusUpdate
from vibeflow.expenses.service import ExpenseService
from vibeflow.profiles.models import Profile

router = APIRouter(prefix="", tags=["expenses"])


@router.post("", response_model=ExpenseOut, status_code=201)
async def create_expense(
    body: ExpenseCreate,
    profile: Profile = Depends(require_permission("expense:request")),
    db: AsyncSession = Depends(get_db),
):
    return await ExpenseService.create_expense(db, profile, body)


@router.get("/my-expenses", response_model=list[ExpenseOut])
async def my_expenses(
    status: Optional[ExpenseStatus] = Query(None),
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ExpenseService.list_user_expenses(db, profile.id, status=status)


@router.get("/pending", response_model=list[ExpenseOut])
async def pending_expenses(
    profile: Profile = Depends(require_permission("expense:review")),
    db: AsyncSession = Depends(get_db),
):
    return await ExpenseService.list_pending(db, profile)


@router.get("/{expense_id}", response_model=ExpenseOut)
async def get_expense(
    expense_id: uuid.UUID,
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ExpenseService.get_expense(db, expense_id, profile)


@router.put("/{expense_id}/status", response_model=ExpenseOut)
async def review_expense(
    expense_id: uuid.UUID,
    body: ExpenseStatusUpdate,
    profile: Profile = Depends(require_permission("expense:review")),
    db: AsyncSession = Depends(get_db),
):
    return await ExpenseService.update_status(
        db, expense_id, body.status, profile, remarks=body.remarks,
    )
