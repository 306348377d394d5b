import uuid
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from safeportal.core import policies
from safeportal.core.exceptions import Conflict, NotFound, PolicyViolation
from safeportal.core.policies import Principal
from safeportal.models.user import AppRole, User, UserRole

logger = structlog.get_logger()


class RoleService:
    """
    Role assignments. Only administrators change them; identities can read
    their own.
    """

    @staticmethod
    async def has_role(db: AsyncSession, user_id: uuid.UUID, role: AppRole) -> bool:
        result = await db.execute(
            select(UserRole.id).where(UserRole.user_id == user_id, UserRole.role == role)
        )
        return result.first() is not None

    @staticmethod
    async def list_roles(db: AsyncSession, principal: Principal, user_id: uuid.UUID) -> List[UserRole]:
        if not policies.can_read_roles(principal, user_id):
            raise PolicyViolation("Not allowed to view roles of another user")
        result = await db.execute(
            select(UserRole).where(UserRole.user_id == user_id).order_by(UserRole.created_at)
        )
        return list(result.scalars().all())

    @staticmethod
    async def grant(db: AsyncSession, principal: Principal, user_id: uuid.UUID, role: AppRole) -> UserRole:
        if not policies.can_manage_roles(principal):
            raise PolicyViolation("Only admins can manage roles")
        if not await db.get(User, user_id):
            raise NotFound("User not found")

        result = await db.execute(
            select(UserRole).where(UserRole.user_id == user_id, UserRole.role == role)
        )
        existing = result.scalar_one_or_none()
        if existing:
            return existing

        assignment = UserRole(user_id=user_id, role=role)
        db.add(assignment)
        await db.commit()
        logger.info("role_granted", user_id=str(user_id), role=role.value, by=str(principal.user_id))
        return assignment

    @staticmethod
    async def revoke(db: AsyncSession, principal: Principal, user_id: uuid.UUID, role: AppRole) -> None:
        if not policies.can_manage_roles(principal):
            raise PolicyViolation("Only admins can manage roles")
        if role == AppRole.USER:
            raise Conflict("The base user role cannot be revoked")

        result = await db.execute(
            select(UserRole).where(UserRole.user_id == user_id, UserRole.role == role)
        )
        assignment = result.scalar_one_or_none()
        if not assignment:
            raise NotFound("Role assignment not found")

        await db.delete(assignment)
        await db.commit()
        logger.info("role_revoked", user_id=str(user_id), role=role.value, by=str(principal.user_id))
