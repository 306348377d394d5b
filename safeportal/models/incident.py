import uuid
import enum
from sqlalchemy import Column, Boolean, DateTime, Enum, ForeignKey, Numeric, Text, JSON, Uuid

from safeportal.db.base import Base
from safeportal.core.time_utils import get_utc_now


class IncidentType(str, enum.Enum):
    HARASSMENT = 'harassment'
    ASSAULT = 'assault'
    STALKING = 'stalking'
    DOMESTIC_VIOLENCE = 'domestic_violence'
    CYBER_HARASSMENT = 'cyber_harassment'
    WORKPLACE_HARASSMENT = 'workplace_harassment'
    OTHER = 'other'


class IncidentStatus(str, enum.Enum):
    NEW = 'new'
    UNDER_REVIEW = 'under_review'
    RESOLVED = 'resolved'


class Incident(Base):
    """
    An incident report. Anonymous reports carry no reporter (user_id is NULL).
    Reports are never deleted.
    """
    __tablename__ = "incidents"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    incident_type = Column(
        Enum(IncidentType, name="incident_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    description = Column(Text, nullable=False)

    location_address = Column(Text, nullable=True)
    latitude = Column(Numeric(10, 8, asdecimal=False), nullable=True)
    longitude = Column(Numeric(11, 8, asdecimal=False), nullable=True)

    is_anonymous = Column(Boolean, default=False, nullable=False)
    status = Column(
        Enum(IncidentStatus, name="incident_status", values_callable=lambda e: [m.value for m in e]),
        default=IncidentStatus.NEW,
        nullable=False,
        index=True,
    )
    evidence_urls = Column(JSON, default=list)

    created_at = Column(DateTime(timezone=True), default=get_utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=get_utc_now, onupdate=get_utc_now, nullable=False)
