import uuid
from sqlalchemy import Column, String, DateTime, Text, Uuid

from safeportal.db.base import Base
from safeportal.core.time_utils import get_utc_now


class LegalResource(Base):
    __tablename__ = "legal_resources"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    category = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=get_utc_now, nullable=False)
