from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.dispatch.domain.models.ambulance import Ambulance
from src.dispatch.domain.models.geo import GeoPoint
from src.dispatch.domain.models.user import UserSummary

MIN_PRIORITY = 1
MAX_PRIORITY = 5


class IncidentStatus(str, Enum):
    PENDING = "pending"
    DISPATCHED = "dispatched"
    REQUEST_DENIED = "request-denied"
    RESOLVED = "resolved"


# Allowed transitions when strict incident transitions are enabled.
INCIDENT_TRANSITIONS: Dict[IncidentStatus, FrozenSet[IncidentStatus]] = {
    IncidentStatus.PENDING: frozenset({IncidentStatus.DISPATCHED, IncidentStatus.REQUEST_DENIED}),
    IncidentStatus.DISPATCHED: frozenset({IncidentStatus.RESOLVED}),
    IncidentStatus.REQUEST_DENIED: frozenset({IncidentStatus.RESOLVED}),
    IncidentStatus.RESOLVED: frozenset(),
}


class Incident(BaseModel):
    """An emergency report filed by a logged-in user.

    ``phone`` is the reporter's primary phone at the time of reporting. The
    reporter reference becomes null if the reporting account is deleted.
    """

    id: UUID
    user_id: Optional[UUID] = None
    phone: str
    location: GeoPoint
    incident_type: str
    priority: int = Field(..., ge=MIN_PRIORITY, le=MAX_PRIORITY)
    status: IncidentStatus = IncidentStatus.PENDING
    reported_time: datetime
    ambulance_id: Optional[UUID] = None


class IncidentDetail(BaseModel):
    id: UUID
    user: Optional[UserSummary] = None
    phone: str
    location: GeoPoint
    incident_type: str
    priority: int
    status: IncidentStatus
    reported_time: datetime
    ambulance: Optional[Ambulance] = None
