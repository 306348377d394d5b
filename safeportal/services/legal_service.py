import uuid
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from safeportal.core import policies
from safeportal.core.exceptions import NotFound, PolicyViolation
from safeportal.core.policies import Principal
from safeportal.models.legal_resource import LegalResource

logger = structlog.get_logger()


def filter_resources(
    resources: Iterable[LegalResource], search: Optional[str] = None, category: Optional[str] = None
) -> List[LegalResource]:
    """
    Case-insensitive substring match on title or content, ANDed with exact
    category equality. Empty filters match everything. Input order is kept.
    """
    term = (search or "").lower()
    matches = []
    for resource in resources:
        matches_search = term in resource.title.lower() or term in resource.content.lower()
        matches_category = not category or resource.category == category
        if matches_search and matches_category:
            matches.append(resource)
    return matches


def group_by_category(resources: Iterable[LegalResource]) -> Dict[str, List[LegalResource]]:
    grouped: Dict[str, List[LegalResource]] = {}
    for resource in resources:
        grouped.setdefault(resource.category, []).append(resource)
    return grouped


class LegalService:

    @staticmethod
    async def list_resources(
        db: AsyncSession, search: Optional[str] = None, category: Optional[str] = None
    ) -> List[LegalResource]:
        result = await db.execute(
            select(LegalResource).order_by(LegalResource.category, LegalResource.title)
        )
        return filter_resources(result.scalars().all(), search, category)

    @staticmethod
    async def categories(db: AsyncSession) -> List[str]:
        result = await db.execute(
            select(LegalResource.category).distinct().order_by(LegalResource.category)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get(db: AsyncSession, resource_id: uuid.UUID) -> LegalResource:
        resource = await db.get(LegalResource, resource_id)
        if not resource:
            raise NotFound("Legal resource not found")
        return resource

    @staticmethod
    async def create(db: AsyncSession, principal: Principal, category: str, title: str, content: str) -> LegalResource:
        if not policies.can_manage_legal_resources(principal):
            raise PolicyViolation("Only admins can manage legal resources")
        resource = LegalResource(category=category, title=title, content=content)
        db.add(resource)
        await db.commit()
        await db.refresh(resource)
        logger.info("legal_resource_created", resource_id=str(resource.id))
        return resource

    @staticmethod
    async def update(db: AsyncSession, principal: Principal, resource_id: uuid.UUID, changes: dict) -> LegalResource:
        if not policies.can_manage_legal_resources(principal):
            raise PolicyViolation("Only admins can manage legal resources")
        resource = await LegalService.get(db, resource_id)
        for key, value in changes.items():
            setattr(resource, key, value)
        await db.commit()
        await db.refresh(resource)
        return resource

    @staticmethod
    async def delete(db: AsyncSession, principal: Principal, resource_id: uuid.UUID) -> None:
        if not policies.can_manage_legal_resources(principal):
            raise PolicyViolation("Only admins can manage legal resources")
        resource = await LegalService.get(db, resource_id)
        await db.delete(resource)
        await db.commit()
        logger.info("legal_resource_deleted", resource_id=str(resource_id))
