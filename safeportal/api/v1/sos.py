from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from safeportal.db.session import get_db
from safeportal.api import deps
from safeportal.core.policies import Principal
from safeportal.schemas.sos import SOSActivateRequest, SOSAlertResponse
from safeportal.services.outbox_service import OutboxService
from safeportal.services.sos_service import SOSService

router = APIRouter()


@router.post("/", response_model=SOSAlertResponse, status_code=status.HTTP_201_CREATED)
async def activate_sos(
    payload: SOSActivateRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    """
    Raise an SOS alert at the given position. The alert is created even if the
    address lookup or the email notification fails.
    """
    alert, outbox = await SOSService.activate(
        db, principal, payload.latitude, payload.longitude, payload.location_address
    )
    background_tasks.add_task(OutboxService.deliver, outbox.id)
    return alert


@router.get("/active", response_model=Optional[SOSAlertResponse])
async def read_active_sos(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await SOSService.get_active(db, principal)


@router.get("/mine", response_model=List[SOSAlertResponse])
async def read_my_alerts(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await SOSService.list_mine(db, principal)


@router.get("/all", response_model=List[SOSAlertResponse])
async def read_all_alerts(
    active_only: bool = False,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_admin),
) -> Any:
    return await SOSService.list_all(db, principal, active_only)


@router.get("/{alert_id}", response_model=SOSAlertResponse)
async def read_alert(
    alert_id: UUID,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await SOSService.get(db, principal, alert_id)


@router.post("/{alert_id}/deactivate", response_model=SOSAlertResponse)
async def deactivate_sos(
    alert_id: UUID,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await SOSService.deactivate(db, principal, alert_id)
