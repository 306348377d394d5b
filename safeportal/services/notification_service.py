"""
NotificationDispatcher - email notifications for SOS alerts and incident
status changes.

Used two ways:
1. Directly by the /functions/v1/notify-* endpoints, where DispatchError maps
   one-to-one onto the HTTP status of the response.
2. By OutboxService when delivering queued notifications in the background.

Authorization is re-derived here from the Principal on every call; callers
never pass a pre-checked flag.
"""

import uuid
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from safeportal.core.config import settings
from safeportal.core.policies import Principal
from safeportal.core.time_utils import format_iso
from safeportal.models.incident import Incident
from safeportal.models.sos_alert import SOSAlert
from safeportal.models.user import User, Profile
from safeportal.services.email_service import EmailService, EmailDeliveryError

logger = structlog.get_logger()

SKIPPED_ANONYMOUS = "anonymous incident"
SKIPPED_NO_EMAIL = "user email not found"


class DispatchError(Exception):
    def __init__(self, status_code: int, error: str, details: Optional[str] = None):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details

    @property
    def is_transient(self) -> bool:
        return self.status_code >= 500

    def to_body(self) -> Dict[str, Any]:
        body = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


def _parse_id(value: Union[str, uuid.UUID]) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class NotificationDispatcher:

    @staticmethod
    def ensure_configured() -> None:
        if not EmailService.is_configured():
            raise DispatchError(500, "Missing function environment configuration")

    @staticmethod
    async def notify_incident_update(
        db: AsyncSession, principal: Principal, incident_id: Union[str, uuid.UUID]
    ) -> Dict[str, Any]:
        """
        Tell the reporter that an administrator changed their incident.
        Anonymous incidents and reporters without an address are skipped,
        which still counts as success.
        """
        NotificationDispatcher.ensure_configured()

        if not principal.is_admin:
            raise DispatchError(403, "Forbidden")

        incident = None
        parsed = _parse_id(incident_id)
        if parsed:
            incident = await db.get(Incident, parsed)
        if not incident:
            raise DispatchError(404, "Incident not found")

        if not incident.user_id:
            logger.info("incident_notification_skipped", incident_id=str(incident.id), reason=SKIPPED_ANONYMOUS)
            return {"success": True, "skipped": SKIPPED_ANONYMOUS}

        to_email = await NotificationDispatcher._email_for(db, incident.user_id)
        if not to_email:
            logger.info("incident_notification_skipped", incident_id=str(incident.id), reason=SKIPPED_NO_EMAIL)
            return {"success": True, "skipped": SKIPPED_NO_EMAIL}

        profile = await db.get(Profile, incident.user_id)
        subject, text = build_incident_message(incident, profile)
        await NotificationDispatcher._send([to_email], subject, text)

        logger.info("incident_notification_sent", incident_id=str(incident.id))
        return {"success": True}

    @staticmethod
    async def notify_sos(
        db: AsyncSession, principal: Principal, sos_id: Union[str, uuid.UUID]
    ) -> Dict[str, Any]:
        """Tell the owner of an SOS alert that it was activated from their account."""
        NotificationDispatcher.ensure_configured()

        alert = None
        parsed = _parse_id(sos_id)
        if parsed:
            alert = await db.get(SOSAlert, parsed)
        if not alert:
            raise DispatchError(404, "SOS alert not found")

        if not principal.is_admin and alert.user_id != principal.user_id:
            raise DispatchError(403, "Forbidden")

        to_email = await NotificationDispatcher._email_for(db, alert.user_id)
        if not to_email:
            raise DispatchError(400, "Target user email not found")

        profile = await db.get(Profile, alert.user_id)
        subject, text = build_sos_message(alert, profile)
        await NotificationDispatcher._send([to_email], subject, text)

        logger.info("sos_notification_sent", alert_id=str(alert.id))
        return {"success": True}

    @staticmethod
    async def _email_for(db: AsyncSession, user_id: uuid.UUID) -> Optional[str]:
        result = await db.execute(select(User.email).where(User.id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def _send(to: List[str], subject: str, text: str) -> None:
        try:
            await EmailService.send(to, subject, text)
        except EmailDeliveryError as e:
            logger.error("email_delivery_failed", subject=subject, details=e.details)
            raise DispatchError(502, "Failed to send email", e.details)


def _greeting(profile: Optional[Profile]) -> str:
    name = f" {profile.full_name}" if profile and profile.full_name else ""
    return f"Hi{name},"


def build_incident_message(incident: Incident, profile: Optional[Profile]) -> Tuple[str, str]:
    lines = [_greeting(profile), "", "The status of your incident report has been updated.", ""]
    if incident.incident_type:
        lines.append(f"Type: {incident.incident_type.value}")
    if incident.description:
        desc = str(incident.description)
        short_desc = f"{desc[:197]}..." if len(desc) > 200 else desc
        lines.append(f"Description: {short_desc}")
    if incident.location_address:
        lines.append(f"Location: {incident.location_address}")
    if incident.status:
        lines.append(f"Current status: {incident.status.value}")
    if incident.created_at:
        lines.append(f"Reported on: {format_iso(incident.created_at)}")
    lines.append("")
    lines.append(f"You can log in to the {settings.PORTAL_NAME} to see full details.")
    return "Incident status updated", "\n".join(lines)


def build_sos_message(alert: SOSAlert, profile: Optional[Profile]) -> Tuple[str, str]:
    lines = [_greeting(profile), "", "An SOS alert was activated from your account.", ""]
    if alert.created_at:
        lines.append(f"Time: {format_iso(alert.created_at)}")
    if alert.location_address:
        lines.append(f"Location: {alert.location_address}")
    if alert.latitude is not None and alert.longitude is not None:
        lat, lon = alert.latitude, alert.longitude
        lines.append(f"Coordinates: {lat}, {lon}")
        lines.append(f"Map: https://www.openstreetmap.org/?mlat={lat}&mlon={lon}#map=18/{lat}/{lon}")
    if profile and (profile.emergency_contact_name or profile.emergency_contact_phone):
        lines.append("")
        lines.append("Emergency contact on file:")
        if profile.emergency_contact_name:
            lines.append(f"Name: {profile.emergency_contact_name}")
        if profile.emergency_contact_phone:
            lines.append(f"Phone: {profile.emergency_contact_phone}")
    lines.append("")
    lines.append("If this was not you, please secure your account immediately.")
    return "SOS alert activated", "\n".join(lines)
