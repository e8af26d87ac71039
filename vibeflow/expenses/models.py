"""Expenses ORM models: ExpenseRequest.

SQLAlchemy 2.0 async-compatible models.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vibeflow.common.constants import ExpenseStatus, ExpenseType
from vibeflow.database import Base


class ExpenseRequest(Base):
    """Employee expense claim / reimbursement request."""

    __tablename__ = "expenses"
    __table_args__ = (
        sa.CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
        sa.Index("ix_expenses_user_id", "user_id"),
        sa.Index("ix_expenses_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("profiles.id"),
        nullable=False,
    )
    type: Mapped[ExpenseType] = mapped_column(
        sa.Enum(ExpenseType, name="expense_type", create_type=False), nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(sa.Numeric(12, 2), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(sa.Text)
    expense_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    status: Mapped[ExpenseStatus] = mapped_column(
        sa.Enum(ExpenseStatus, name="request_status", create_type=False),
        nullable=False,
        default=ExpenseStatus.pending,
    )
    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("profiles.id"), nullable=True,
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True),
    )
    remarks: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=sa.func.now(),
    )

    # Relationships
    requester = relationship(
        "Profile", foreign_keys=[user_id],
    )
    reviewer = relationship(
        "Profile", foreign_keys=[reviewed_by],
    )

    def __repr__(self) -> str:
        return f"<ExpenseRequest {self.type.value if self.type else '?'} {self.amount}>"
