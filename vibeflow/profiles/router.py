"""Profiles router — listing, lookup, team view, admin edits and role switches.

Routes:
    /profiles               — List profiles with balances
    /profiles/count         — Total number of profiles
    /profiles/{id}          — Get, update profile
    /profiles/{id}/team     — Direct reports
    /profiles/{id}/role     — Role switch (admin)
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from vibeflow.auth.dependencies import get_current_user, require_permission
from vibeflow.common.constants import UserRole
from vibeflow.common.pagination import PaginatedResponse, PaginationParams
from vibeflow.database import get_db
from vibeflow.profiles.models import Profile
from vibeflow.profiles.schemas import ProfileCount, ProfileOut, ProfileUpdate, RoleUpdate
from vibeflow.profiles.service import ProfileService

router = APIRouter(prefix="", tags=["profiles"])


@router.get("", response_model=PaginatedResponse[ProfileOut])
async def list_profiles(
    role: Optional[UserRole] = Query(None),
    department: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    pagination: PaginationParams = Depends(),
    profile: Profile = Depends(require_permission("profile:read")),
    db: AsyncSession = Depends(get_db),
):
    return await ProfileService.list_profiles(
        db, pagination, role=role, department=department, search=search,
    )


@router.get("/count", response_model=ProfileCount)
async def count_profiles(
    profile: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ProfileCount(count=await ProfileService.count_profiles(db))


@router.get("/{profile_id}", response_model=ProfileOut)
async def get_profile(
    profile_id: uuid.UUID,
    profile: Profile = Depends(require_permission("profile:read")),
    db: AsyncSession = Depends(get_db),
):
    return ProfileOut.model_validate(await ProfileService.get_profile(db, profile_id))


@router.get("/{profile_id}/team", response_model=list[ProfileOut])
async def get_team(
    profile_id: uuid.UUID,
    profile: Profile = Depends(require_permission("profile:read")),
    db: AsyncSession = Depends(get_db),
):
    """Direct reports of a profile (its manager_id points at *profile_id*)."""
    team = await ProfileService.get_team(db, profile_id)
    return [ProfileOut.model_validate(p) for p in team]


@router.put("/{profile_id}", response_model=ProfileOut)
async def update_profile(
    profile_id: uuid.UUID,
    body: ProfileUpdate,
    profile: Profile = Depends(require_permission("profile:update")),
    db: AsyncSession = Depends(get_db),
):
    updated = await ProfileService.update_profile(db, profile_id, body, profile.id)
    return ProfileOut.model_validate(updated)


@router.put("/{profile_id}/role", response_model=ProfileOut)
async def change_role(
    profile_id: uuid.UUID,
    body: RoleUpdate,
    profile: Profile = Depends(require_permission("profile:change_role")),
    db: AsyncSession = Depends(get_db),
):
    updated = await ProfileService.change_role(db, profile_id, body.role, profile.id)
    return ProfileOut.model_validate(updated)
