"""
Notification dispatcher endpoints.

    POST /functions/v1/notify-sos               {"sosId": "..."}
    POST /functions/v1/notify-incident-update   {"incidentId": "..."}

Status codes: 200 success (optionally {"skipped": reason}), 400 bad body or
unresolvable recipient, 401 no/invalid credential, 403 role check failed,
404 unknown record, 405 wrong method, 500 email settings incomplete,
502 email provider rejected the message. OPTIONS always answers "ok".
"""

from typing import Any, Awaitable, Callable, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from safeportal.api.deps import resolve_principal
from safeportal.core.policies import Principal
from safeportal.db.session import get_db
from safeportal.services.notification_service import DispatchError, NotificationDispatcher

router = APIRouter()
logger = structlog.get_logger()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "authorization, content-type",
}

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _json(status_code: int, content: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


async def _dispatch(
    request: Request,
    db: AsyncSession,
    id_field: str,
    handler: Callable[[AsyncSession, Principal, str], Awaitable[Dict[str, Any]]],
):
    if request.method == "OPTIONS":
        return PlainTextResponse("ok", headers=CORS_HEADERS)
    if request.method != "POST":
        return _json(405, {"error": "Method not allowed"})

    auth_header = request.headers.get("Authorization") or ""
    if not auth_header:
        return _json(401, {"error": "Missing Authorization header"})

    try:
        NotificationDispatcher.ensure_configured()
    except DispatchError as e:
        logger.error("dispatcher_not_configured", path=request.url.path)
        return _json(e.status_code, e.to_body())

    try:
        body = await request.json()
    except ValueError:
        return _json(400, {"error": "Invalid JSON body"})

    record_id = body.get(id_field) if isinstance(body, dict) else None
    if not record_id:
        return _json(400, {"error": f"Missing {id_field}"})

    scheme, _, token = auth_header.partition(" ")
    principal = None
    if scheme.lower() == "bearer" and token:
        principal = await resolve_principal(db, token.strip())
    if principal is None:
        return _json(401, {"error": "Unauthorized"})

    try:
        outcome = await handler(db, principal, str(record_id))
    except DispatchError as e:
        return _json(e.status_code, e.to_body())
    return _json(200, outcome)


@router.api_route("/notify-sos", methods=ALL_METHODS)
async def notify_sos(request: Request, db: AsyncSession = Depends(get_db)):
    return await _dispatch(request, db, "sosId", NotificationDispatcher.notify_sos)


@router.api_route("/notify-incident-update", methods=ALL_METHODS)
async def notify_incident_update(request: Request, db: AsyncSession = Depends(get_db)):
    return await _dispatch(request, db, "incidentId", NotificationDispatcher.notify_incident_update)
