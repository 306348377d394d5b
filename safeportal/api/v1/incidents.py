from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from safeportal.db.session import get_db
from safeportal.api import deps
from safeportal.core.policies import Principal
from safeportal.models.incident import IncidentStatus
from safeportal.schemas.incident import (
    IncidentCreate,
    IncidentUpdate,
    IncidentStatusUpdate,
    IncidentResponse,
)
from safeportal.services.incident_service import IncidentService
from safeportal.services.outbox_service import OutboxService

router = APIRouter()


@router.post("/", response_model=IncidentResponse, status_code=status.HTTP_201_CREATED)
async def report_incident(
    payload: IncidentCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    """
    File an incident report. Anonymous reports are stored without a reporter.
    """
    return await IncidentService.create(db, principal, payload)


@router.get("/", response_model=List[IncidentResponse])
async def read_incidents(
    status_filter: Optional[IncidentStatus] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_elevated),
) -> Any:
    """
    Triage queue for admins and moderators, optionally narrowed to one status.
    """
    return await IncidentService.list_all(db, principal, status_filter, limit)


@router.get("/mine", response_model=List[IncidentResponse])
async def read_my_incidents(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await IncidentService.list_mine(db, principal)


@router.get("/{incident_id}", response_model=IncidentResponse)
async def read_incident(
    incident_id: UUID,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await IncidentService.get(db, principal, incident_id)


@router.patch("/{incident_id}", response_model=IncidentResponse)
async def update_incident(
    incident_id: UUID,
    payload: IncidentUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await IncidentService.update(db, principal, incident_id, payload.model_dump(exclude_unset=True))


@router.put("/{incident_id}/status", response_model=IncidentResponse)
async def update_incident_status(
    incident_id: UUID,
    payload: IncidentStatusUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_elevated),
) -> Any:
    """
    Triage an incident. The reporter is emailed in the background when an
    administrator makes the change.
    """
    incident, outbox = await IncidentService.set_status(
        db, principal, incident_id, payload.status, payload.expected_status
    )
    if outbox is not None:
        background_tasks.add_task(OutboxService.deliver, outbox.id)
    return incident
