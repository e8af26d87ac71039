"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update   → request bodies (write)
  - *Out                → response bodies (read)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from vibeflow.common.constants import TERMINAL_STATUSES, LeaveStatus, LeaveType

# Upper bound for a single balance counter; the column is a 32-bit INTEGER
MAX_BALANCE_DAYS = 3660


# ═════════════════════════════════════════════════════════════════════
# Leave Balance
# ═════════════════════════════════════════════════════════════════════


class LeaveBalanceOut(BaseModel):
    """The balance row for one profile."""

    model_config = ConfigDict(from_attributes=True)

    user_id: uuid.UUID
    annual: int
    sick: int
    personal: int
    updated_at: Optional[datetime] = None


class LeaveBalanceUpdate(BaseModel):
    """Direct override of balance counters. Omitted fields are left unchanged."""

    annual: Optional[int] = Field(None, ge=0, le=MAX_BALANCE_DAYS, strict=True)
    sick: Optional[int] = Field(None, ge=0, le=MAX_BALANCE_DAYS, strict=True)
    personal: Optional[int] = Field(None, ge=0, le=MAX_BALANCE_DAYS, strict=True)

    @model_validator(mode="after")
    def require_one_field(self) -> "LeaveBalanceUpdate":
        if self.annual is None and self.sick is None and self.personal is None:
            raise ValueError("At least one of annual, sick or personal is required.")
        return self


# ═════════════════════════════════════════════════════════════════════
# Leave Request — Create
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for applying a leave request."""

    type: LeaveType
    start_date: date = Field(..., description="Leave start date (inclusive)")
    end_date: date = Field(..., description="Leave end date (inclusive)")
    reason: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def validate_dates(self) -> "LeaveRequestCreate":
        if self.start_date > self.end_date:
            raise ValueError("start_date must be on or before end_date.")
        if (self.end_date - self.start_date).days > 365:
            raise ValueError("Leave request cannot span more than 365 days.")
        return self


# ═════════════════════════════════════════════════════════════════════
# Leave Request — Review
# ═════════════════════════════════════════════════════════════════════


class LeaveStatusUpdate(BaseModel):
    """Reviewer decision on a pending leave request."""

    status: LeaveStatus
    remarks: Optional[str] = Field(None, max_length=2000)

    @field_validator("status")
    @classmethod
    def terminal_only(cls, v: LeaveStatus) -> LeaveStatus:
        if v not in TERMINAL_STATUSES:
            raise ValueError("status must be 'approved' or 'rejected'.")
        return v


# ═════════════════════════════════════════════════════════════════════
# Leave Request — Response
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestOut(BaseModel):
    """Full leave request response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    type: LeaveType
    start_date: date
    end_date: date
    total_days: int
    reason: Optional[str] = None
    status: LeaveStatus
    reviewed_by: Optional[uuid.UUID] = None
    reviewed_at: Optional[datetime] = None
    remarks: Optional[str] = None
    created_at: Optional[datetime] = None

    # Filled by the service when the requester is loaded
    requester_name: Optional[str] = None
