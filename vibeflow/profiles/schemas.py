"""Profile Pydantic v2 schemas — request / response validation."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from vibeflow.common.constants import UserRole


# ── Embedded ────────────────────────────────────────────────────────

class LeaveBalanceBrief(BaseModel):
    """Remaining leave days joined onto a profile."""

    model_config = ConfigDict(from_attributes=True)

    annual: int = 0
    sick: int = 0
    personal: int = 0


# ── Responses ───────────────────────────────────────────────────────

class ProfileOut(BaseModel):
    """Public profile representation; never carries the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    department: Optional[str] = None
    position: Optional[str] = None
    avatar_url: Optional[str] = None
    manager_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    leave_balance: Optional[LeaveBalanceBrief] = None


class ProfileCount(BaseModel):
    count: int


# ── Requests ────────────────────────────────────────────────────────

class ProfileUpdate(BaseModel):
    """Admin edit of a profile. Omitted fields are left unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    department: Optional[str] = Field(None, max_length=100)
    position: Optional[str] = Field(None, max_length=100)
    avatar_url: Optional[HttpUrl] = None
    manager_id: Optional[uuid.UUID] = None


class RoleUpdate(BaseModel):
    role: UserRole
