"""Expenses Pydantic v2 schemas — request/response validation."""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vibeflow.common.constants import TERMINAL_STATUSES, ExpenseStatus, ExpenseType


class ExpenseCreate(BaseModel):
    """Submit a new expense claim."""

    type: ExpenseType
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: Optional[str] = Field(None, max_length=2000)
    expense_date: date


class ExpenseStatusUpdate(BaseModel):
    """Reviewer decision on a pending expense claim."""

    status: ExpenseStatus
    remarks: Optional[str] = Field(None, max_length=2000)

    @field_validator("status")
    @classmethod
    def terminal_only(cls, v: ExpenseStatus) -> ExpenseStatus:
        if v not in TERMINAL_STATUSES:
            raise ValueError("status must be 'approved' or 'rejected'.")
        return v


class ExpenseOut(BaseModel):
    """Full expense claim representation."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    type: ExpenseType
    amount: Decimal
    description: Optional[str] = None
    expense_date: date
    status: ExpenseStatus
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    remarks: Optional[str] = None
    created_at: Optional[datetime] = None

    requester_name: Optional[str] = None
