from __future__ import annotations

from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from src.dispatch.domain.models.geo import GeoPoint


class AmbulanceStatus(str, Enum):
    AVAILABLE = "available"
    ON_DUTY = "on-duty"
    MAINTENANCE = "maintenance"


class Ambulance(BaseModel):
    id: UUID
    license_plate: str
    status: AmbulanceStatus
    hospital_name: Optional[str] = None
    location: GeoPoint

