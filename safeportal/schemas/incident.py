from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Optional
from uuid import UUID
from datetime import datetime
from safeportal.models.incident import IncidentType, IncidentStatus


class _Coordinates(BaseModel):
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @model_validator(mode="after")
    def coordinates_come_in_pairs(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self


class IncidentCreate(_Coordinates):
    """Report form. A missing type or empty description never reaches the store."""
    model_config = ConfigDict(str_strip_whitespace=True)

    incident_type: IncidentType
    description: str = Field(..., min_length=1)
    location_address: Optional[str] = None
    is_anonymous: bool = False
    evidence_urls: List[str] = Field(default_factory=list)


class IncidentUpdate(BaseModel):
    """
    Narrative fields only. Status goes through the status endpoint; sending it
    here is rejected by extra="forbid".

    Coordinates may be sent one at a time; the pair is checked against the
    stored row by IncidentService.update.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    incident_type: Optional[IncidentType] = None
    description: Optional[str] = Field(None, min_length=1)
    location_address: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    evidence_urls: Optional[List[str]] = None

    @field_validator("incident_type", "description", "evidence_urls")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class IncidentStatusUpdate(BaseModel):
    status: IncidentStatus
    expected_status: Optional[IncidentStatus] = Field(
        None, description="If set, the update only applies when the current status still equals this value"
    )


class IncidentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: Optional[UUID] = None
    incident_type: IncidentType
    description: str
    location_address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_anonymous: bool
    status: IncidentStatus
    evidence_urls: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class AdminIncidentItem(IncidentResponse):
    reporter_name: Optional[str] = None
