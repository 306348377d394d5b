"""
Notification Outbox - durable record of every notification the portal owes.

One row per triggering write (SOS activation, incident status change), written
in the same transaction. Delivery updates status/attempts/last_error; rows in
'pending' with next_attempt_at in the past are picked up again by the poller.
"""

import uuid
import enum
from sqlalchemy import Column, String, Integer, DateTime, Enum, Text, Uuid

from safeportal.db.base import Base
from safeportal.core.time_utils import get_utc_now


class OutboxKind(str, enum.Enum):
    SOS = 'sos'
    INCIDENT_UPDATE = 'incident_update'


class OutboxStatus(str, enum.Enum):
    PENDING = 'pending'
    SENT = 'sent'
    SKIPPED = 'skipped'
    FAILED = 'failed'


class NotificationOutbox(Base):
    __tablename__ = "notification_outbox"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    kind = Column(
        Enum(OutboxKind, name="outbox_kind", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    target_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    actor_id = Column(Uuid(as_uuid=True), nullable=False)

    status = Column(
        Enum(OutboxStatus, name="outbox_status", values_callable=lambda e: [m.value for m in e]),
        default=OutboxStatus.PENDING,
        nullable=False,
        index=True,
    )
    attempts = Column(Integer, default=0, nullable=False)
    last_error = Column(Text, nullable=True)  # Internal debugging only
    skipped_reason = Column(String, nullable=True)
    next_attempt_at = Column(DateTime(timezone=True), default=get_utc_now, nullable=False)

    created_at = Column(DateTime(timezone=True), default=get_utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=get_utc_now, onupdate=get_utc_now, nullable=False)
