"""Dashboard Pydantic v2 schemas — response model for the summary widget."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from vibeflow.expenses.schemas import ExpenseOut
from vibeflow.leave.schemas import LeaveBalanceOut, LeaveRequestOut


class ReviewQueueCounts(BaseModel):
    """Pending requests the caller may decide on."""

    leaves: int = 0
    expenses: int = 0


class DashboardSummaryResponse(BaseModel):
    """Self-service cards for the caller's home page."""

    balance: Optional[LeaveBalanceOut] = None
    pending_leaves: int = Field(..., description="Caller's leave requests still pending")
    pending_expenses: int = Field(..., description="Caller's expense claims still pending")
    recent_leaves: list[LeaveRequestOut] = Field(default_factory=list)
    recent_expenses: list[ExpenseOut] = Field(default_factory=list)
    awaiting_review: Optional[ReviewQueueCounts] = Field(
        None, description="Only present for managers, HR and admins",
    )
