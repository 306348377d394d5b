from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from safeportal.db.session import get_db
from safeportal.api import deps
from safeportal.core.policies import Principal
from safeportal.schemas.profile import ProfileResponse, ProfileUpdate
from safeportal.services.profile_service import ProfileService

router = APIRouter()


@router.get("/me", response_model=ProfileResponse)
async def read_own_profile(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await ProfileService.get(db, principal.user_id)


@router.patch("/me", response_model=ProfileResponse)
async def update_own_profile(
    payload: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    """
    Update name, phone and emergency contact details.
    """
    return await ProfileService.update(db, principal, principal.user_id, payload.model_dump(exclude_unset=True))


@router.get("/{profile_id}", response_model=ProfileResponse)
async def read_profile(
    profile_id: UUID,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await ProfileService.get(db, profile_id)
