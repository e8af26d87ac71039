"""Leave ORM models: LeaveBalance, LeaveRequest."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vibeflow.common.constants import LeaveStatus, LeaveType
from vibeflow.database import Base

if TYPE_CHECKING:
    from vibeflow.profiles.models import Profile


class LeaveBalance(Base):
    """Remaining leave days per profile — exactly one row per profile."""

    __tablename__ = "leave_balances"
    __table_args__ = (
        sa.CheckConstraint("annual >= 0", name="ck_leave_balances_annual"),
        sa.CheckConstraint("sick >= 0", name="ck_leave_balances_sick"),
        sa.CheckConstraint("personal >= 0", name="ck_leave_balances_personal"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    annual: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    sick: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    personal: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=sa.func.now(),
    )

    # Relationships
    profile: Mapped[Profile] = relationship(
        back_populates="leave_balance"
    )


class LeaveRequest(Base):
    __tablename__ = "leaves"
    __table_args__ = (
        sa.Index("ix_leaves_user_id", "user_id"),
        sa.Index("ix_leaves_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=False
    )
    type: Mapped[LeaveType] = mapped_column(
        sa.Enum(LeaveType, name="leave_type", create_type=False), nullable=False
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(sa.Text)
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="request_status", create_type=False),
        nullable=False,
        default=LeaveStatus.pending,
    )
    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("profiles.id")
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    remarks: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=sa.func.now(),
    )

    # Relationships
    requester: Mapped[Profile] = relationship(
        foreign_keys=[user_id]
    )
    reviewer: Mapped[Optional[Profile]] = relationship(
        foreign_keys=[reviewed_by]
    )

    @property
    def total_days(self) -> int:
        """Inclusive calendar-day count of the request."""
        return (self.end_date - self.start_date).days + 1
