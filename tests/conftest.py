"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test settings before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from vibeflow.auth.service import hash_password
from vibeflow.common.constants import ExpenseType, LeaveStatus, LeaveType, UserRole
from vibeflow.config import settings
from vibeflow.database import Base, get_db
from vibeflow.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import vibeflow.common.audit  # noqa: F401
import vibeflow.profiles.models  # noqa: F401
import vibeflow.leave.models  # noqa: F401
import vibeflow.expenses.models  # noqa: F401

from vibeflow.expenses.models import ExpenseRequest
from vibeflow.leave.models import LeaveBalance, LeaveRequest
from vibeflow.profiles.models import Profile

# ── SQLite compat: compile PG-specific types to TEXT ────────────────

from sqlalchemy.dialects.postgresql import INET, JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(INET, "sqlite")
def _inet_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Register PG-compatible functions for SQLite
@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() as a SQLite custom function."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from vibeflow.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────
# Each factory commits in its own session so HTTP requests see the rows.

TEST_PASSWORD = "correct-horse"


async def seed_profile(
    *,
    email: Optional[str] = None,
    name: str = "Test User",
    role: UserRole = UserRole.employee,
    manager_id: Optional[uuid.UUID] = None,
    department: str = "Engineering",
    annual: int = 10,
    sick: int = 5,
    personal: int = 3,
    with_balance: bool = True,
) -> Profile:
    profile = Profile(
        id=uuid.uuid4(),
        name=name,
        email=email or f"{role.value}-{uuid.uuid4().hex[:6]}@example.com",
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
        department=department,
        position="Engineer",
        manager_id=manager_id,
    )
    async with TestSessionFactory() as session:
        session.add(profile)
        await session.flush()
        if with_balance:
            session.add(LeaveBalance(
                user_id=profile.id, annual=annual, sick=sick, personal=personal,
            ))
        await session.commit()
    return profile


async def seed_leave(
    user_id: uuid.UUID,
    *,
    leave_type: LeaveType = LeaveType.annual,
    start_date: date = date(2026, 11, 2),
    end_date: date = date(2026, 11, 4),
    status: LeaveStatus = LeaveStatus.pending,
    created_at: Optional[datetime] = None,
) -> LeaveRequest:
    leave = LeaveRequest(
        id=uuid.uuid4(),
        user_id=user_id,
        type=leave_type,
        start_date=start_date,
        end_date=end_date,
        reason="Family trip",
        status=status,
        created_at=created_at or datetime.now(timezone.utc),
    )
    async with TestSessionFactory() as session:
        session.add(leave)
        await session.commit()
    return leave


async def seed_expense(
    user_id: uuid.UUID,
    *,
    expense_type: ExpenseType = ExpenseType.travel,
    amount: Decimal = Decimal("120.50"),
    status: LeaveStatus = LeaveStatus.pending,
) -> ExpenseRequest:
    expense = ExpenseRequest(
        id=uuid.uuid4(),
        user_id=user_id,
        type=expense_type,
        amount=amount,
        description="Client visit",
        expense_date=date(2026, 10, 1),
        status=status,
    )
    async with TestSessionFactory() as session:
        session.add(expense)
        await session.commit()
    return expense


async def get_balance(user_id: uuid.UUID) -> Optional[LeaveBalance]:
    """Read the stored balance row in a fresh session."""
    async with TestSessionFactory() as session:
        return await session.get(LeaveBalance, user_id)


async def get_leave(leave_id: uuid.UUID) -> Optional[LeaveRequest]:
    async with TestSessionFactory() as session:
        return await session.get(LeaveRequest, leave_id)


@pytest.fixture
async def employee_profile() -> Profile:
    return await seed_profile(name="Erin Employee", email="erin@example.com")


@pytest.fixture
async def manager_profile() -> Profile:
    return await seed_profile(
        name="Mona Manager", email="mona@example.com", role=UserRole.manager,
    )


@pytest.fixture
async def hr_profile() -> Profile:
    return await seed_profile(name="Harper HR", email="harper@example.com", role=UserRole.hr)


@pytest.fixture
async def admin_profile() -> Profile:
    return await seed_profile(
        name="Ada Admin", email="ada@example.com", role=UserRole.admin,
    )


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    role: UserRole = UserRole.employee,
    email: str = "test@example.com",
    expired: bool = False,
) -> str:
    """Generate a JWT access token for testing."""
    now = datetime.now(timezone.utc)
    if expired:
        exp = now - timedelta(hours=1)
    else:
        exp = now + timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "userId": str(user_id),
        "role": role.value,
        "email": email,
        "iat": now - timedelta(hours=2) if expired else now,
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_for(profile: Profile) -> dict[str, str]:
    """Bearer auth headers for *profile*."""
    token = create_access_token(profile.id, profile.role, profile.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(employee_profile) -> dict[str, str]:
    return auth_for(employee_profile)
