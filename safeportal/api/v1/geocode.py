from fastapi import APIRouter, Depends, Query

from safeportal.api import deps
from safeportal.core.policies import Principal
from safeportal.services.geocoding_service import GeocodingService

router = APIRouter()


@router.get("/reverse")
async def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    principal: Principal = Depends(deps.get_current_principal),
):
    """
    Free-text address for a coordinate pair; empty when the lookup fails.
    """
    return {"address": await GeocodingService.reverse(lat, lon)}
