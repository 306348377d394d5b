import uuid
from sqlalchemy import Column, Boolean, DateTime, ForeignKey, Numeric, Text, Uuid

from safeportal.db.base import Base
from safeportal.core.time_utils import get_utc_now


class SOSAlert(Base):
    """
    deactivated_at is set exactly when is_active flips to False and never
    changes afterwards.
    """
    __tablename__ = "sos_alerts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    latitude = Column(Numeric(10, 8, asdecimal=False), nullable=False)
    longitude = Column(Numeric(11, 8, asdecimal=False), nullable=False)
    location_address = Column(Text, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=get_utc_now, nullable=False)
    deactivated_at = Column(DateTime(timezone=True), nullable=True)
