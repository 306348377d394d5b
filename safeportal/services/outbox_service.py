"""
OutboxService - at-least-once delivery of queued notifications.

Lifecycle of a row:
    pending --(dispatch ok)-------------------------> sent
    pending --(dispatch skipped)--------------------> skipped
    pending --(4xx: forbidden/not found/no email)---> failed
    pending --(5xx/502: config, provider, network)--> pending (backoff),
                                                    or failed once attempts
                                                    reach NOTIFY_MAX_ATTEMPTS

The initiating request never waits on any of this: enqueue() only adds the
row to the caller's transaction.
"""

import asyncio
import uuid
from datetime import timedelta
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from safeportal.core.config import settings
from safeportal.core.exceptions import PolicyViolation
from safeportal.core.policies import Principal
from safeportal.core.time_utils import get_utc_now
from safeportal.db.session import AsyncSessionLocal
from safeportal.models.notification_outbox import NotificationOutbox, OutboxKind, OutboxStatus
from safeportal.services.identity_service import IdentityService
from safeportal.services.notification_service import DispatchError, NotificationDispatcher

logger = structlog.get_logger()


class OutboxService:

    @staticmethod
    def enqueue(db: AsyncSession, kind: OutboxKind, target_id: uuid.UUID, actor_id: uuid.UUID) -> NotificationOutbox:
        """Add a pending notification to the caller's unit of work. The caller commits."""
        entry = NotificationOutbox(
            id=uuid.uuid4(),
            kind=kind,
            target_id=target_id,
            actor_id=actor_id,
            status=OutboxStatus.PENDING,
            attempts=0,
            next_attempt_at=get_utc_now(),
        )
        db.add(entry)
        return entry

    @staticmethod
    def backoff_seconds(attempts: int) -> float:
        return settings.NOTIFY_RETRY_BASE_SECONDS * (2 ** max(attempts - 1, 0))

    @staticmethod
    async def deliver(outbox_id: uuid.UUID) -> Optional[OutboxStatus]:
        """
        Background entry point: one delivery attempt for one row, in its own
        session. Failures are recorded on the row, never raised.
        """
        async with AsyncSessionLocal() as db:
            try:
                entry = await db.get(NotificationOutbox, outbox_id)
                if not entry or entry.status != OutboxStatus.PENDING:
                    return entry.status if entry else None
                return await OutboxService.attempt(db, entry)
            except Exception as e:
                logger.error("outbox_delivery_crashed", outbox_id=str(outbox_id), error=str(e))
                return None

    @staticmethod
    async def deliver_due(limit: Optional[int] = None) -> int:
        """Attempt every pending row whose next_attempt_at has passed. Returns the number attempted."""
        async with AsyncSessionLocal() as db:
            stmt = (
                select(NotificationOutbox)
                .where(
                    NotificationOutbox.status == OutboxStatus.PENDING,
                    NotificationOutbox.next_attempt_at <= get_utc_now(),
                )
                .order_by(NotificationOutbox.next_attempt_at)
                .limit(limit or settings.OUTBOX_BATCH_SIZE)
            )
            result = await db.execute(stmt)
            entries = result.scalars().all()
            for entry in entries:
                await OutboxService.attempt(db, entry)
            return len(entries)

    @staticmethod
    async def attempt(db: AsyncSession, entry: NotificationOutbox) -> OutboxStatus:
        entry.attempts += 1
        try:
            actor = await IdentityService.load_principal(db, entry.actor_id)
            if actor is None:
                raise DispatchError(401, "Unauthorized")

            if entry.kind == OutboxKind.SOS:
                outcome = await NotificationDispatcher.notify_sos(db, actor, entry.target_id)
            else:
                outcome = await NotificationDispatcher.notify_incident_update(db, actor, entry.target_id)

            if outcome.get("skipped"):
                entry.status = OutboxStatus.SKIPPED
                entry.skipped_reason = outcome["skipped"]
            else:
                entry.status = OutboxStatus.SENT
            entry.last_error = None
        except DispatchError as e:
            entry.last_error = f"{e.status_code}: {e.error}" + (f" ({e.details})" if e.details else "")
            if e.is_transient and entry.attempts < settings.NOTIFY_MAX_ATTEMPTS:
                entry.next_attempt_at = get_utc_now() + timedelta(seconds=OutboxService.backoff_seconds(entry.attempts))
            else:
                entry.status = OutboxStatus.FAILED
            logger.warning(
                "notification_dispatch_failed",
                outbox_id=str(entry.id),
                kind=entry.kind.value,
                attempts=entry.attempts,
                status_code=e.status_code,
                final=entry.status == OutboxStatus.FAILED,
            )

        await db.commit()
        return entry.status

    @staticmethod
    async def list_entries(
        db: AsyncSession, principal: Principal, status: Optional[OutboxStatus] = None, limit: int = 100
    ) -> List[NotificationOutbox]:
        if not principal.is_admin:
            raise PolicyViolation("Only admins can inspect notifications")
        stmt = select(NotificationOutbox).order_by(NotificationOutbox.created_at.desc()).limit(limit)
        if status:
            stmt = stmt.where(NotificationOutbox.status == status)
        result = await db.execute(stmt)
        return list(result.scalars().all())


class OutboxWorker:
    """Polls for due notifications until stopped. Started from the app lifespan."""

    def __init__(self, interval_seconds: float):
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())
            logger.info("outbox_worker_started", interval=self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("outbox_worker_stopped")

    async def _run(self) -> None:
        while True:
            try:
                attempted = await OutboxService.deliver_due()
                if attempted:
                    logger.info("outbox_batch_processed", attempted=attempted)
            except Exception as e:
                logger.error("outbox_poll_failed", error=str(e))
            await asyncio.sleep(self.interval_seconds)
