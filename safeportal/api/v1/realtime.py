"""
Realtime change notifications over WebSocket.

    ws://<host>/api/v1/realtime/forum_posts?token=<bearer token>

Each message is {"table", "type", "id"}; clients re-fetch on receipt.
sos_alerts events only reach the alert's owner and administrators.
"""

import asyncio

from fastapi import APIRouter, WebSocket, status
import structlog

from safeportal.api.deps import resolve_principal
from safeportal.core import policies
from safeportal.core.policies import Principal
from safeportal.db.session import AsyncSessionLocal
from safeportal.services.realtime import REALTIME_TABLES, ChangeEvent, change_feed

router = APIRouter()
logger = structlog.get_logger()


def _visible(principal: Principal, event: ChangeEvent) -> bool:
    if event.table == "sos_alerts":
        return policies.can_read_sos(principal, event.owner_id)
    return True


@router.websocket("/{table}")
async def subscribe(websocket: WebSocket, table: str, token: str = ""):
    if table not in REALTIME_TABLES:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    async with AsyncSessionLocal() as db:
        principal = await resolve_principal(db, token)
    if principal is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    queue = change_feed.subscribe(table)
    logger.info("realtime_subscribed", table=table, user_id=str(principal.user_id))

    async def forward():
        while True:
            event = await queue.get()
            if _visible(principal, event):
                await websocket.send_json(event.to_message())

    async def drain():
        # Only here to notice the client going away.
        while True:
            await websocket.receive_text()

    tasks = [asyncio.create_task(forward()), asyncio.create_task(drain())]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        change_feed.unsubscribe(table, queue)
        logger.info("realtime_unsubscribed", table=table, user_id=str(principal.user_id))
