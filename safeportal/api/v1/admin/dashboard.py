from typing import Any, List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from safeportal.db.session import get_db
from safeportal.api import deps
from safeportal.core.policies import Principal
from safeportal.models.notification_outbox import OutboxStatus
from safeportal.schemas.admin import StatsResponse, OutboxItem
from safeportal.schemas.incident import AdminIncidentItem, IncidentResponse
from safeportal.services.admin_service import AdminService
from safeportal.services.incident_service import IncidentService
from safeportal.services.outbox_service import OutboxService

router = APIRouter()


@router.get("/stats", response_model=StatsResponse)
async def read_stats(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_admin),
) -> Any:
    """
    Headline counters: registered users, incidents, active SOS alerts.
    """
    return await AdminService.stats(db, principal)


@router.get("/incidents", response_model=List[AdminIncidentItem])
async def read_recent_incidents(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_admin),
) -> Any:
    rows = await IncidentService.list_recent_with_reporter(db, principal)
    return [
        AdminIncidentItem(
            **IncidentResponse.model_validate(incident).model_dump(),
            reporter_name=reporter_name,
        )
        for incident, reporter_name in rows
    ]


@router.get("/notifications", response_model=List[OutboxItem])
async def read_notifications(
    status: Optional[OutboxStatus] = None,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_admin),
) -> Any:
    return await OutboxService.list_entries(db, principal, status, limit)
