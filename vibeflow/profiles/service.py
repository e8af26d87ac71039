"""Profile service layer — listing, lookup, admin edits and role switches."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from vibeflow.common.audit import create_audit_entry
from vibeflow.common.constants import UserRole
from vibeflow.common.exceptions import NotFoundException, ValidationException
from vibeflow.common.pagination import PaginatedResponse, PaginationParams, paginate
from vibeflow.profiles.models import Profile
from vibeflow.profiles.schemas import ProfileOut, ProfileUpdate

logger = logging.getLogger(__name__)


class ProfileService:
    """Async profile operations."""

    # ── Read ──────────────────────────────────────────────────────────

    @staticmethod
    async def list_profiles(
        db: AsyncSession,
        params: PaginationParams,
        *,
        role: Optional[UserRole] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
    ) -> PaginatedResponse:
        """List profiles with their balances, ordered by name."""
        query = select(Profile).order_by(Profile.name)
        if role:
            query = query.where(Profile.role == role)
        if department:
            query = query.where(Profile.department == department)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(
                    func.lower(Profile.name).like(pattern),
                    func.lower(Profile.email).like(pattern),
                )
            )
        return await paginate(
            db,
            query,
            params,
            model=Profile,
            schema=ProfileOut,
            options=[selectinload(Profile.leave_balance)],
        )

    @staticmethod
    async def count_profiles(db: AsyncSession) -> int:
        result = await db.execute(select(func.count()).select_from(Profile))
        return result.scalar_one()

    @staticmethod
    async def get_profile(db: AsyncSession, profile_id: uuid.UUID) -> Profile:
        """Return a profile with its balance row loaded, or raise 404."""
        result = await db.execute(
            select(Profile)
            .where(Profile.id == profile_id)
            .options(selectinload(Profile.leave_balance))
        )
        profile = result.scalars().first()
        if profile is None:
            raise NotFoundException("Profile", str(profile_id))
        return profile

    @staticmethod
    async def get_team(db: AsyncSession, manager_id: uuid.UUID) -> list[Profile]:
        """Direct reports of *manager_id*."""
        await ProfileService.get_profile(db, manager_id)
        result = await db.execute(
            select(Profile)
            .where(Profile.manager_id == manager_id)
            .options(selectinload(Profile.leave_balance))
            .order_by(Profile.name)
        )
        return list(result.scalars().all())

    # ── Update ────────────────────────────────────────────────────────

    @staticmethod
    async def _manager_chain_contains(
        db: AsyncSession,
        start_id: uuid.UUID,
        target_id: uuid.UUID,
    ) -> bool:
        """True if walking up the managers from *start_id* reaches *target_id*."""
        seen: set[uuid.UUID] = set()
        current: Optional[uuid.UUID] = start_id
        while current is not None and current not in seen:
            if current == target_id:
                return True
            seen.add(current)
            result = await db.execute(
                select(Profile.manager_id).where(Profile.id == current)
            )
            current = result.scalar_one_or_none()
        return False

    @staticmethod
    async def update_profile(
        db: AsyncSession,
        profile_id: uuid.UUID,
        data: ProfileUpdate,
        actor_id: uuid.UUID,
    ) -> Profile:
        """Admin edit. Only fields present in the request body change."""
        profile = await ProfileService.get_profile(db, profile_id)
        changes = data.model_dump(exclude_unset=True)

        if "manager_id" in changes and changes["manager_id"] is not None:
            manager_id = changes["manager_id"]
            if manager_id == profile.id:
                raise ValidationException({"manager_id": ["A profile cannot manage itself."]})
            await ProfileService.get_profile(db, manager_id)
            if await ProfileService._manager_chain_contains(db, manager_id, profile.id):
                raise ValidationException(
                    {"manager_id": ["This manager already reports to the profile."]}
                )
        if "avatar_url" in changes and changes["avatar_url"] is not None:
            changes["avatar_url"] = str(changes["avatar_url"])
        if "name" in changes and changes["name"] is None:
            raise ValidationException({"name": ["Name cannot be empty."]})

        old_values = {}
        for field, value in changes.items():
            old = getattr(profile, field)
            old_values[field] = str(old) if old is not None else None
            setattr(profile, field, value)
        profile.updated_at = datetime.now(timezone.utc)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="profile",
            entity_id=profile.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values={k: str(v) if v is not None else None for k, v in changes.items()},
        )
        await db.commit()
        return profile

    @staticmethod
    async def change_role(
        db: AsyncSession,
        profile_id: uuid.UUID,
        role: UserRole,
        actor_id: uuid.UUID,
    ) -> Profile:
        """Switch a profile's role. Effective on the profile's next request."""
        profile = await ProfileService.get_profile(db, profile_id)
        old_role = profile.role
        if old_role == role:
            return profile

        profile.role = role
        profile.updated_at = datetime.now(timezone.utc)
        await db.flush()

        await create_audit_entry(
            db,
            action="change_role",
            entity_type="profile",
            entity_id=profile.id,
            actor_id=actor_id,
            old_values={"role": old_role.value},
            new_values={"role": role.value},
        )
        await db.commit()
        logger.info("Role of %s changed %s -> %s by %s", profile.id, old_role.value, role.value, actor_id)
        return profile
