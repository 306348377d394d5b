"""
IdentityService - sign up, log in, and resolve a token subject into a Principal.

Registering an identity also creates its profile row and its default 'user'
role assignment in the same transaction, so every identity has exactly one
of each from the moment it exists.
"""

import uuid
from typing import Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from safeportal.core.exceptions import Conflict
from safeportal.core.policies import Principal
from safeportal.core.security import get_password_hash, verify_password
from safeportal.models.user import AppRole, User, Profile, UserRole

logger = structlog.get_logger()


class IdentityService:

    @staticmethod
    async def _email_taken(db: AsyncSession, email: str) -> bool:
        result = await db.execute(select(User.id).where(func.lower(User.email) == email))
        return result.scalar_one_or_none() is not None

    @staticmethod
    async def register(
        db: AsyncSession, email: str, password: str, full_name: Optional[str] = None
    ) -> User:
        email = email.lower()
        if await IdentityService._email_taken(db, email):
            raise Conflict("User with this email already exists")

        password_hash = await run_in_threadpool(get_password_hash, password)
        user = User(email=email, password_hash=password_hash)
        try:
            db.add(user)
            await db.flush()

            db.add(Profile(id=user.id, full_name=full_name))
            db.add(UserRole(user_id=user.id, role=AppRole.USER))
            await db.commit()
        except IntegrityError:
            # A concurrent signup took the address between the check and the insert.
            await db.rollback()
            logger.warning("identity_conflict", email=email)
            raise Conflict("User with this email already exists")

        logger.info("identity_created", user_id=str(user.id))
        return user

    @staticmethod
    async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[User]:
        result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
        user = result.scalar_one_or_none()
        if not user:
            return None
        if not await run_in_threadpool(verify_password, password, user.password_hash):
            return None
        return user

    @staticmethod
    async def load_principal(db: AsyncSession, user_id: uuid.UUID) -> Optional[Principal]:
        user = await db.get(User, user_id)
        if not user:
            return None
        roles = await db.execute(select(UserRole.role).where(UserRole.user_id == user_id))
        return Principal(user_id=user.id, email=user.email, roles=frozenset(roles.scalars().all()))
