from typing import Any, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from safeportal.db.session import get_db
from safeportal.api import deps
from safeportal.core.policies import Principal
from safeportal.schemas.legal import (
    LegalResourceCreate,
    LegalResourceUpdate,
    LegalResourceResponse,
    LegalResourceGroup,
)
from safeportal.services.legal_service import LegalService, group_by_category

router = APIRouter()


@router.get("/", response_model=List[LegalResourceResponse])
async def read_resources(
    search: Optional[str] = None,
    category: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    """
    Resources ordered by category then title, optionally filtered by a
    case-insensitive search term and/or an exact category.
    """
    return await LegalService.list_resources(db, search, category)


@router.get("/categories", response_model=List[str])
async def read_categories(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    return await LegalService.categories(db)


@router.get("/grouped", response_model=List[LegalResourceGroup])
async def read_grouped_resources(
    search: Optional[str] = None,
    category: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_principal),
) -> Any:
    resources = await LegalService.list_resources(db, search, category)
    return [
        {"category": name, "resources": items}
        for name, items in group_by_category(resources).items()
    ]


@router.post("/", response_model=LegalResourceResponse, status_code=status.HTTP_201_CREATED)
async def create_resource(
    payload: LegalResourceCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_admin),
) -> Any:
    return await LegalService.create(db, principal, payload.category, payload.title, payload.content)


@router.patch("/{resource_id}", response_model=LegalResourceResponse)
async def update_resource(
    resource_id: UUID,
    payload: LegalResourceUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_admin),
) -> Any:
    return await LegalService.update(db, principal, resource_id, payload.model_dump(exclude_unset=True))


@router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(
    resource_id: UUID,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(deps.get_current_admin),
):
    await LegalService.delete(db, principal, resource_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
