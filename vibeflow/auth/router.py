"""Auth router — registration, password login, current user profile."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from vibeflow.auth import service
from vibeflow.auth.dependencies import get_current_user
from vibeflow.auth.schemas import AuthResponse, LoginRequest, MeResponse, RegisterRequest
from vibeflow.common.constants import PERMISSIONS, ROUTES
from vibeflow.common.rate_limit import limiter
from vibeflow.config import settings
from vibeflow.database import get_db
from vibeflow.profiles.models import Profile
from vibeflow.profiles.schemas import ProfileOut

router = APIRouter(prefix="", tags=["auth"])


# ── POST /register ──────────────────────────────────────────────────

@router.post("/register", response_model=AuthResponse, status_code=201)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def register(
    request: Request,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
):
    """Create an account and its leave balance; returns a bearer token."""
    profile = await service.register(
        db,
        body,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    token, expires_in = service.create_access_token(profile)
    return AuthResponse(
        user=ProfileOut.model_validate(profile),
        token=token,
        expires_in=expires_in,
    )


# ── POST /login ─────────────────────────────────────────────────────

@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    profile = await service.authenticate(db, body.email, body.password)
    token, expires_in = service.create_access_token(profile)
    return AuthResponse(
        user=ProfileOut.model_validate(profile),
        token=token,
        expires_in=expires_in,
    )


# ── GET /me — Current user profile ─────────────────────────────────

@router.get("/me", response_model=MeResponse)
async def me(profile: Profile = Depends(get_current_user)):
    out = ProfileOut.model_validate(profile)
    return MeResponse(
        **out.model_dump(),
        permissions=PERMISSIONS.get(profile.role, []),
        routes=ROUTES.get(profile.role, []),
    )
