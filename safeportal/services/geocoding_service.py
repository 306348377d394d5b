import httpx
import structlog

from safeportal.core.config import settings

logger = structlog.get_logger()


class GeocodingService:
    """
    Reverse geocoding against a Nominatim-compatible endpoint.

    Never raises: any upstream failure yields an empty address so callers
    (SOS activation, incident capture) carry on without one.
    """

    @staticmethod
    async def reverse(latitude: float, longitude: float) -> str:
        params = {"format": "json", "lat": latitude, "lon": longitude}
        headers = {"User-Agent": settings.GEOCODING_USER_AGENT}
        try:
            async with httpx.AsyncClient(timeout=settings.GEOCODING_TIMEOUT_SECONDS) as client:
                resp = await client.get(settings.GEOCODING_URL, params=params, headers=headers)
            if resp.status_code != 200:
                logger.warning("reverse_geocode_bad_status", status=resp.status_code)
                return ""
            return resp.json().get("display_name") or ""
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("reverse_geocode_failed", error=str(e))
            return ""
