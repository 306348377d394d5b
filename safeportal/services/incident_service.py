"""
IncidentService - incident reports and their status workflow.

Statuses: new -> under_review -> resolved. Elevated roles (admin, moderator)
may set any status from any status; owners edit the narrative only. A status
change by an administrator queues an email to the reporter.
"""

import uuid
from typing import List, Optional, Tuple

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from safeportal.core import policies
from safeportal.core.config import settings
from safeportal.core.exceptions import Conflict, InvalidInput, NotFound, PolicyViolation
from safeportal.core.policies import Principal
from safeportal.models.incident import Incident, IncidentStatus
from safeportal.models.notification_outbox import NotificationOutbox, OutboxKind
from safeportal.models.user import Profile
from safeportal.schemas.incident import IncidentCreate
from safeportal.services.outbox_service import OutboxService

logger = structlog.get_logger()


class IncidentService:

    @staticmethod
    async def create(db: AsyncSession, principal: Principal, payload: IncidentCreate) -> Incident:
        user_id = None if payload.is_anonymous else principal.user_id
        if not policies.can_create_incident(principal, user_id, payload.is_anonymous):
            raise PolicyViolation("Not allowed to report on behalf of another user")

        incident = Incident(
            user_id=user_id,
            incident_type=payload.incident_type,
            description=payload.description,
            location_address=payload.location_address or None,
            latitude=payload.latitude,
            longitude=payload.longitude,
            is_anonymous=payload.is_anonymous,
            status=IncidentStatus.NEW,
            evidence_urls=list(payload.evidence_urls),
        )
        db.add(incident)
        await db.commit()
        await db.refresh(incident)

        # Anonymous reports are logged without the submitter.
        logger.info("incident_reported", incident_id=str(incident.id), anonymous=incident.is_anonymous)
        return incident

    @staticmethod
    async def list_mine(db: AsyncSession, principal: Principal) -> List[Incident]:
        stmt = (
            select(Incident)
            .where(Incident.user_id == principal.user_id)
            .order_by(Incident.created_at.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_all(
        db: AsyncSession,
        principal: Principal,
        status: Optional[IncidentStatus] = None,
        limit: int = 100,
    ) -> List[Incident]:
        """Triage queue for admins and moderators, newest first."""
        if not policies.can_set_incident_status(principal):
            raise PolicyViolation("Only admins and moderators can list all incidents")

        stmt = select(Incident).order_by(Incident.created_at.desc()).limit(limit)
        if status is not None:
            stmt = stmt.where(Incident.status == status)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get(db: AsyncSession, principal: Principal, incident_id: uuid.UUID) -> Incident:
        incident = await db.get(Incident, incident_id)
        if not incident or not policies.can_read_incident(principal, incident):
            raise NotFound("Incident not found")
        return incident

    @staticmethod
    async def update(db: AsyncSession, principal: Principal, incident_id: uuid.UUID, changes: dict) -> Incident:
        incident = await IncidentService.get(db, principal, incident_id)
        if not policies.can_update_incident(principal, incident):
            raise PolicyViolation("Not allowed to edit this incident")

        changes.pop("status", None)
        # Coordinates may arrive one at a time; the stored pair must stay whole.
        latitude = changes.get("latitude", incident.latitude)
        longitude = changes.get("longitude", incident.longitude)
        if (latitude is None) != (longitude is None):
            raise InvalidInput("latitude and longitude must be given together")

        for key, value in changes.items():
            setattr(incident, key, value)
        await db.commit()
        await db.refresh(incident)
        return incident

    @staticmethod
    async def set_status(
        db: AsyncSession,
        principal: Principal,
        incident_id: uuid.UUID,
        status: IncidentStatus,
        expected_status: Optional[IncidentStatus] = None,
    ) -> Tuple[Incident, Optional[NotificationOutbox]]:
        """
        Compare-and-swap when expected_status is given: the row only changes if
        its status is still the expected one, otherwise Conflict.
        """
        if not policies.can_set_incident_status(principal):
            raise PolicyViolation("Only admins and moderators can change incident status")

        incident = await db.get(Incident, incident_id)
        if not incident:
            raise NotFound("Incident not found")

        stmt = update(Incident).where(Incident.id == incident_id).values(status=status)
        if expected_status is not None:
            stmt = stmt.where(Incident.status == expected_status)
        result = await db.execute(stmt.execution_options(synchronize_session=False))
        if result.rowcount == 0:
            await db.rollback()
            raise Conflict("Incident status changed concurrently")

        outbox = None
        if principal.is_admin:
            outbox = OutboxService.enqueue(db, OutboxKind.INCIDENT_UPDATE, incident_id, principal.user_id)
        await db.commit()
        await db.refresh(incident)

        logger.info(
            "incident_status_changed",
            incident_id=str(incident_id),
            status=status.value,
            by=str(principal.user_id),
        )
        return incident, outbox

    @staticmethod
    async def list_recent_with_reporter(
        db: AsyncSession, principal: Principal, limit: Optional[int] = None
    ) -> List[Tuple[Incident, Optional[str]]]:
        """Admin dashboard listing: newest incidents with the reporter's display name."""
        if not principal.is_admin:
            raise PolicyViolation("Admin access required")
        stmt = (
            select(Incident, Profile.full_name)
            .outerjoin(Profile, Profile.id == Incident.user_id)
            .order_by(Incident.created_at.desc())
            .limit(limit or settings.ADMIN_INCIDENT_LIMIT)
        )
        result = await db.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]

    @staticmethod
    async def count(db: AsyncSession) -> int:
        result = await db.execute(select(func.count(Incident.id)))
        return result.scalar_one()
