import asyncio
from sqlalchemy import select, func
import structlog

from safeportal.core.config import settings
from safeportal.core.logging import setup_logging
from safeportal.db.base import Base
from safeportal.db.seed import LEGAL_RESOURCES
from safeportal.db.session import engine, AsyncSessionLocal

# Import all models so Base knows about them
from safeportal.models import AppRole, LegalResource, User, UserRole
from safeportal.services.identity_service import IdentityService

logger = structlog.get_logger()


async def create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_legal_resources(session) -> int:
    """Insert the default catalog into an empty legal_resources table."""
    existing = (await session.execute(select(func.count(LegalResource.id)))).scalar_one()
    if existing:
        return 0
    session.add_all(
        LegalResource(category=category, title=title, content=content)
        for category, title, content in LEGAL_RESOURCES
    )
    await session.commit()
    return len(LEGAL_RESOURCES)


async def ensure_first_admin(session) -> None:
    email = settings.FIRST_ADMIN_EMAIL
    if not email or not settings.FIRST_ADMIN_PASSWORD:
        return

    result = await session.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()
    if not user:
        user = await IdentityService.register(session, email, settings.FIRST_ADMIN_PASSWORD, "Administrator")

    result = await session.execute(
        select(UserRole).where(UserRole.user_id == user.id, UserRole.role == AppRole.ADMIN)
    )
    if not result.scalar_one_or_none():
        session.add(UserRole(user_id=user.id, role=AppRole.ADMIN))
        await session.commit()
        logger.info("first_admin_created", email=email)


async def main():
    logger.info("db_init_start")
    try:
        async with asyncio.timeout(10):
            await create_tables()
    except TimeoutError:
        logger.error("db_init_timeout", message="Connection to database timed out after 10s. Check network/firewall/URL settings.")
        raise

    async with AsyncSessionLocal() as session:
        seeded = await seed_legal_resources(session)
        await ensure_first_admin(session)

    logger.info("db_init_complete", legal_resources_seeded=seeded)


if __name__ == "__main__":
    setup_logging()
    asyncio.run(main())
