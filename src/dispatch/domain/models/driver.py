from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from src.dispatch.domain.models.ambulance import Ambulance
from src.dispatch.domain.models.user import UserSummary


class Driver(BaseModel):
    """Driver role record.

    Exists only while the owning user's role is ``driver``. The user does not
    reference its driver record; the link is this back-reference only.
    """

    id: UUID
    user_id: UUID
    license_number: str
    assigned_ambulance_id: Optional[UUID] = None


class DriverDetail(BaseModel):
    id: UUID
    user: Optional[UserSummary] = None
    license_number: str
    assigned_ambulance: Optional[Ambulance] = None
