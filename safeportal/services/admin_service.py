from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from safeportal.core.exceptions import PolicyViolation
from safeportal.core.policies import Principal
from safeportal.models.sos_alert import SOSAlert
from safeportal.models.user import Profile
from safeportal.services.incident_service import IncidentService


class AdminService:

    @staticmethod
    async def stats(db: AsyncSession, principal: Principal) -> dict:
        if not principal.is_admin:
            raise PolicyViolation("Admin access required")
        total_users = (await db.execute(select(func.count(Profile.id)))).scalar_one()
        active_sos = (
            await db.execute(select(func.count(SOSAlert.id)).where(SOSAlert.is_active.is_(True)))
        ).scalar_one()
        return {
            "total_users": total_users,
            "total_incidents": await IncidentService.count(db),
            "active_sos": active_sos,
        }
