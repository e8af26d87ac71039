"""Auth service — password hashing, JWT issue/verify, registration and login."""

from __future__ import annotations

import functools
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vibeflow.auth.schemas import RegisterRequest
from vibeflow.common.audit import create_audit_entry
from vibeflow.common.constants import UserRole
from vibeflow.common.exceptions import (
    DuplicateException,
    ForbiddenException,
    UnauthorizedException,
)
from vibeflow.config import settings
from vibeflow.leave.models import LeaveBalance
from vibeflow.profiles.models import Profile

logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS = "Invalid email or password."


# ── Passwords ───────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


@functools.lru_cache(maxsize=1)
def _dummy_hash() -> str:
    """Hash compared against when the email is unknown, so both login
    failure paths cost one bcrypt check."""
    return hash_password(uuid.uuid4().hex)


def normalize_email(email: str) -> str:
    return email.strip().lower()


# ── JWT helpers ─────────────────────────────────────────────────────

def create_access_token(profile: Profile) -> tuple[str, int]:
    """Return (encoded_jwt, expires_in_seconds)."""
    expires_in = settings.JWT_EXPIRY_HOURS * 3600
    now = datetime.now(timezone.utc)
    payload = {
        "userId": str(profile.id),
        "role": profile.role.value,
        "email": profile.email,
        "iat": now,
        "exp": now + timedelta(hours=settings.JWT_EXPIRY_HOURS),
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return token, expires_in


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry; raise 401 on any failure."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise UnauthorizedException("Token has expired.")
    except JWTError:
        raise UnauthorizedException("Invalid token.")

    if "userId" not in payload:
        raise UnauthorizedException("Invalid token.")
    return payload


# ── Profile lookup ──────────────────────────────────────────────────

async def get_profile_by_email(db: AsyncSession, email: str) -> Optional[Profile]:
    result = await db.execute(
        select(Profile)
        .where(Profile.email == normalize_email(email))
        .options(selectinload(Profile.leave_balance)),
    )
    return result.scalars().first()


# ── Registration ────────────────────────────────────────────────────

async def register(
    db: AsyncSession,
    data: RegisterRequest,
    *,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Profile:
    """Create a profile and its balance row in one transaction.

    Raises DuplicateException (409) when the email is already registered and
    ForbiddenException (403) for a non-employee role while privileged
    self-registration is disabled.
    """
    if data.role != UserRole.employee and not settings.ALLOW_PRIVILEGED_REGISTRATION:
        raise ForbiddenException(
            f"Self-registration as '{data.role.value}' is disabled."
        )

    email = normalize_email(data.email)
    if await get_profile_by_email(db, email) is not None:
        raise DuplicateException("email", email)

    profile = Profile(
        id=uuid.uuid4(),
        name=data.name.strip(),
        email=email,
        password_hash=hash_password(data.password),
        role=data.role,
        department=data.department or settings.DEFAULT_DEPARTMENT,
        position=data.position or settings.DEFAULT_POSITION,
    )
    profile.leave_balance = LeaveBalance(
        annual=settings.DEFAULT_ANNUAL_LEAVE,
        sick=settings.DEFAULT_SICK_LEAVE,
        personal=settings.DEFAULT_PERSONAL_LEAVE,
    )
    db.add(profile)

    try:
        await db.flush()
        await create_audit_entry(
            db,
            action="register",
            entity_type="profile",
            entity_id=profile.id,
            actor_id=profile.id,
            new_values={"email": email, "role": profile.role.value},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        await db.rollback()
        raise DuplicateException("email", email)

    logger.info("Registered profile %s (%s)", profile.id, profile.role.value)
    return profile


# ── Login ───────────────────────────────────────────────────────────

async def authenticate(db: AsyncSession, email: str, password: str) -> Profile:
    """Return the profile for valid credentials, else raise 401.

    Unknown email and wrong password produce the same error and the same
    amount of hashing work.
    """
    profile = await get_profile_by_email(db, email)
    if profile is None:
        verify_password(password, _dummy_hash())
        logger.warning("Failed login attempt")
        raise UnauthorizedException(_INVALID_CREDENTIALS)

    if not verify_password(password, profile.password_hash):
        logger.warning("Failed login attempt")
        raise UnauthorizedException(_INVALID_CREDENTIALS)

    return profile
