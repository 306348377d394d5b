"""
SOSService - the SOS alert lifecycle.

    Inactive --activate--> Active --deactivate--> Inactive (final for that row)

Activation writes the alert and its notification outbox row in one
transaction; notification delivery happens afterwards and can never undo
the alert.
"""

import uuid
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from safeportal.core import policies
from safeportal.core.exceptions import NotFound, PolicyViolation
from safeportal.core.policies import Principal
from safeportal.core.time_utils import get_utc_now
from safeportal.models.notification_outbox import NotificationOutbox, OutboxKind
from safeportal.models.sos_alert import SOSAlert
from safeportal.services.geocoding_service import GeocodingService
from safeportal.services.outbox_service import OutboxService
from safeportal.services.realtime import ChangeEvent, change_feed

logger = structlog.get_logger()


class SOSService:

    @staticmethod
    async def activate(
        db: AsyncSession,
        principal: Principal,
        latitude: float,
        longitude: float,
        location_address: Optional[str] = None,
    ) -> Tuple[SOSAlert, NotificationOutbox]:
        # No dedupe: an identity may hold several active alerts at once.
        if not location_address:
            location_address = await GeocodingService.reverse(latitude, longitude)

        alert = SOSAlert(
            id=uuid.uuid4(),
            user_id=principal.user_id,
            latitude=latitude,
            longitude=longitude,
            location_address=location_address or None,
            is_active=True,
            deactivated_at=None,
        )
        db.add(alert)
        outbox = OutboxService.enqueue(db, OutboxKind.SOS, alert.id, principal.user_id)
        await db.commit()
        await db.refresh(alert)

        logger.info("sos_activated", alert_id=str(alert.id), user_id=str(principal.user_id))
        await change_feed.publish(ChangeEvent("sos_alerts", "INSERT", alert.id, alert.user_id))
        return alert, outbox

    @staticmethod
    async def get(db: AsyncSession, principal: Principal, alert_id: uuid.UUID) -> SOSAlert:
        alert = await db.get(SOSAlert, alert_id)
        if not alert or not policies.can_read_sos(principal, alert.user_id):
            raise NotFound("SOS alert not found")
        return alert

    @staticmethod
    async def deactivate(db: AsyncSession, principal: Principal, alert_id: uuid.UUID) -> SOSAlert:
        alert = await SOSService.get(db, principal, alert_id)
        if not policies.can_update_sos(principal, alert):
            raise PolicyViolation("Only the owner can deactivate an SOS alert")

        if not alert.is_active:
            return alert

        alert.is_active = False
        alert.deactivated_at = get_utc_now()
        await db.commit()
        await db.refresh(alert)

        logger.info("sos_deactivated", alert_id=str(alert.id))
        await change_feed.publish(ChangeEvent("sos_alerts", "UPDATE", alert.id, alert.user_id))
        return alert

    @staticmethod
    async def get_active(db: AsyncSession, principal: Principal) -> Optional[SOSAlert]:
        stmt = (
            select(SOSAlert)
            .where(SOSAlert.user_id == principal.user_id, SOSAlert.is_active.is_(True))
            .order_by(SOSAlert.created_at.desc())
            .limit(1)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_mine(db: AsyncSession, principal: Principal) -> List[SOSAlert]:
        stmt = (
            select(SOSAlert)
            .where(SOSAlert.user_id == principal.user_id)
            .order_by(SOSAlert.created_at.desc())
        )
        result = await db.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_all(db: AsyncSession, principal: Principal, active_only: bool = False) -> List[SOSAlert]:
        if not principal.is_admin:
            raise PolicyViolation("Only admins can view all SOS alerts")
        stmt = select(SOSAlert).order_by(SOSAlert.created_at.desc())
        if active_only:
            stmt = stmt.where(SOSAlert.is_active.is_(True))
        result = await db.execute(stmt)
        return list(result.scalars().all())
