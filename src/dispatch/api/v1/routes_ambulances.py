from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from src.dispatch.api.v1.envelopes import MessageResponse
from src.dispatch.domain.models.ambulance import Ambulance, AmbulanceStatus
from src.dispatch.domain.models.geo import LocationInput
from src.dispatch.domain.models.user import User
from src.dispatch.infra.db.session import get_session
from src.dispatch.security import get_current_admin, get_current_user
from src.dispatch.services.fleet.service import FleetService


router = APIRouter(prefix="/ambulances", tags=["ambulances"])


def get_fleet_service(session: Session = Depends(get_session)) -> FleetService:
    return FleetService(session)


class AmbulanceCreateRequest(BaseModel):
    license_plate: str = Field(..., min_length=1)
    status: AmbulanceStatus
    hospital_name: Optional[str] = None
    location: LocationInput


class AmbulanceUpdateRequest(BaseModel):
    license_plate: Optional[str] = Field(None, min_length=1)
    status: Optional[AmbulanceStatus] = None
    hospital_name: Optional[str] = None
    location: Optional[LocationInput] = None


class AmbulanceEnvelope(BaseModel):
    message: str
    ambulance: Ambulance


class AmbulanceListEnvelope(BaseModel):
    message: str
    ambulances: List[Ambulance]


@router.post("", response_model=AmbulanceEnvelope, status_code=status.HTTP_201_CREATED)
def create_ambulance(
    payload: AmbulanceCreateRequest,
    _: User = Depends(get_current_admin),
    fleet: FleetService = Depends(get_fleet_service),
) -> AmbulanceEnvelope:
    ambulance = fleet.create(
        license_plate=payload.license_plate,
        status=payload.status,
        hospital_name=payload.hospital_name,
        location=payload.location,
    )
    return AmbulanceEnvelope(message="Ambulance created successfully", ambulance=ambulance)


@router.get("", response_model=AmbulanceListEnvelope)
def list_ambulances(
    status_filter: Optional[AmbulanceStatus] = Query(None, alias="status"),
    _: User = Depends(get_current_user),
    fleet: FleetService = Depends(get_fleet_service),
) -> AmbulanceListEnvelope:
    return AmbulanceListEnvelope(
        message="Ambulances retrieved successfully",
        ambulances=fleet.list_ambulances(status=status_filter),
    )


@router.get("/{ambulance_id}", response_model=AmbulanceEnvelope)
def get_ambulance(
    ambulance_id: UUID,
    _: User = Depends(get_current_user),
    fleet: FleetService = Depends(get_fleet_service),
) -> AmbulanceEnvelope:
    return AmbulanceEnvelope(message="Ambulance retrieved successfully", ambulance=fleet.get_ambulance(ambulance_id))


@router.put("/{ambulance_id}", response_model=AmbulanceEnvelope)
def update_ambulance(
    ambulance_id: UUID,
    payload: AmbulanceUpdateRequest,
    _: User = Depends(get_current_admin),
    fleet: FleetService = Depends(get_fleet_service),
) -> AmbulanceEnvelope:
    changes = payload.model_dump(exclude_unset=True, exclude={"location"})
    if "location" in payload.model_fields_set:
        changes["location"] = payload.location
    ambulance = fleet.update(ambulance_id, changes)
    return AmbulanceEnvelope(message="Ambulance updated successfully", ambulance=ambulance)


@router.delete("/{ambulance_id}", response_model=MessageResponse)
def delete_ambulance(
    ambulance_id: UUID,
    _: User = Depends(get_current_admin),
    fleet: FleetService = Depends(get_fleet_service),
) -> MessageResponse:
    fleet.delete(ambulance_id)
    return MessageResponse(message="Ambulance deleted successfully")
