"""Auth dependencies — JWT validation, RBAC enforcement."""

from __future__ import annotations

import logging
import uuid
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vibeflow.auth.service import decode_access_token
from vibeflow.common.constants import has_permission
from vibeflow.common.exceptions import ForbiddenException, UnauthorizedException
from vibeflow.database import get_db
from vibeflow.profiles.models import Profile

logger = logging.getLogger(__name__)


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise UnauthorizedException("Missing or invalid Authorization header.")
    return auth_header[7:]


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Profile:
    """Validate the JWT and return the caller's Profile.

    Authorization uses the role stored on the profile, not the role claim in
    the token, so a role change applies from the caller's next request.
    """
    token = _extract_bearer(request)
    payload = decode_access_token(token)

    try:
        user_id = uuid.UUID(str(payload["userId"]))
    except ValueError:
        raise UnauthorizedException("Invalid token.")

    result = await db.execute(
        select(Profile)
        .where(Profile.id == user_id)
        .options(selectinload(Profile.leave_balance)),
    )
    profile = result.scalars().first()
    if profile is None:
        raise UnauthorizedException("User account not found.")

    if payload.get("role") != profile.role.value:
        logger.debug(
            "Token role %r for %s differs from stored role %r",
            payload.get("role"), profile.id, profile.role.value,
        )

    return profile


# ── Permission-based dependency ─────────────────────────────────────

def require_permission(permission: str) -> Callable:
    """Return a FastAPI dependency that enforces a specific permission string."""

    async def _check(
        profile: Profile = Depends(get_current_user),
    ) -> Profile:
        if not has_permission(profile.role, permission):
            raise ForbiddenException(
                detail=f"Permission '{permission}' is not granted to role '{profile.role.value}'.",
            )
        return profile

    return _check
