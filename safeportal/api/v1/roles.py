from typing import Any, List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from safeportal.db.session import get_db
from safeportal.api import deps
from safeportal.core.policies import Principal
from safeportal.models.user import AppRole
from safeportal.schemas.admin import RoleGrant, RoleResponse
from safeportal.services.role_service import RoleService

router = APIRouter()


@router.get("/{user_id}", response_model=List[RoleResponse])
async def read_roles(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await RoleService.list_roles(db, principal, user_id)


@router.post("/{user_id}", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def grant_role(
    user_id: UUID,
    payload: RoleGrant,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await RoleService.grant(db, principal, user_id, payload.role)


@router.delete("/{user_id}/{role}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_role(
    user_id: UUID,
    role: AppRole,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
):
    await RoleService.revoke(db, principal, user_id, role)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
