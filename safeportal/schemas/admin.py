from pydantic import BaseModel, ConfigDict
from typing import Optional
from uuid import UUID
from datetime import datetime
from safeportal.models.user import AppRole
from safeportal.models.notification_outbox import OutboxKind, OutboxStatus

class StatsResponse(BaseModel):
    total_users: int
    total_incidents: int
    active_sos: int

class RoleGrant(BaseModel):
    role: AppRole

class RoleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    role: AppRole
    created_at: datetime

class OutboxItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    kind: OutboxKind
    target_id: UUID
    actor_id: UUID
    status: OutboxStatus
    attempts: int
    last_error: Optional[str] = None
    skipped_reason: Optional[str] = None
    next_attempt_at: datetime
    created_at: datetime
