import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from safeportal.core import policies
from safeportal.core.exceptions import NotFound, PolicyViolation
from safeportal.core.policies import Principal
from safeportal.models.user import Profile


class ProfileService:

    @staticmethod
    async def get(db: AsyncSession, profile_id: uuid.UUID) -> Profile:
        profile = await db.get(Profile, profile_id)
        if not profile:
            raise NotFound("Profile not found")
        return profile

    @staticmethod
    async def update(db: AsyncSession, principal: Principal, profile_id: uuid.UUID, changes: dict) -> Profile:
        if not policies.can_update_profile(principal, profile_id):
            raise PolicyViolation("Users can only update their own profile")
        profile = await ProfileService.get(db, profile_id)
        for key, value in changes.items():
            setattr(profile, key, value)
        await db.commit()
        await db.refresh(profile)
        return profile
