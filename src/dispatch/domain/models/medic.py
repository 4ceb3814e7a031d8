from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from src.dispatch.domain.models.ambulance import Ambulance
from src.dispatch.domain.models.user import UserSummary


class Medic(BaseModel):
    """Medic role record.

    ``name`` and ``phone`` are copied from the owning user when the medic is
    created and are not kept in sync afterwards.
    """

    id: UUID
    user_id: UUID
    name: str
    phone: str
    specialty: Optional[str] = None
    assigned_ambulance_id: Optional[UUID] = None


class MedicDetail(BaseModel):
    id: UUID
    user: Optional[UserSummary] = None
    name: str
    phone: str
    specialty: Optional[str] = None
    assigned_ambulance: Optional[Ambulance] = None
