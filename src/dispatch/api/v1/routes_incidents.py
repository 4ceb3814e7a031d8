from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from src.dispatch.api.v1.envelopes import MessageResponse
from src.dispatch.domain.models.geo import LocationInput
from src.dispatch.domain.models.incident import MAX_PRIORITY, MIN_PRIORITY, IncidentDetail, IncidentStatus
from src.dispatch.domain.models.user import User
from src.dispatch.infra.db.session import get_session
from src.dispatch.security import get_current_admin, get_current_user
from src.dispatch.services.incidents.service import IncidentService


router = APIRouter(prefix="/incidents", tags=["incidents"])


def get_incident_service(session: Session = Depends(get_session)) -> IncidentService:
    return IncidentService(session)


class IncidentCreateRequest(BaseModel):
    location: LocationInput
    incident_type: str = Field(..., min_length=1)
    priority: int = Field(..., ge=MIN_PRIORITY, le=MAX_PRIORITY)
    ambulance_id: Optional[UUID] = None


class IncidentApproveRequest(BaseModel):
    ambulance_id: Optional[UUID] = None


class IncidentStatusRequest(BaseModel):
    status: IncidentStatus


class IncidentEnvelope(BaseModel):
    message: str
    incident: IncidentDetail


class IncidentListEnvelope(BaseModel):
    message: str
    incidents: List[IncidentDetail]


@router.post("", response_model=IncidentEnvelope, status_code=status.HTTP_201_CREATED)
def report_incident(
    payload: IncidentCreateRequest,
    current_user: User = Depends(get_current_user),
    incidents: IncidentService = Depends(get_incident_service),
) -> IncidentEnvelope:
    incident = incidents.report(
        reporter=current_user,
        location=payload.location,
        incident_type=payload.incident_type,
        priority=payload.priority,
        ambulance_id=payload.ambulance_id,
    )
    return IncidentEnvelope(message="Incident reported successfully", incident=incident)


@router.get("", response_model=IncidentListEnvelope)
def list_incidents(
    status_filter: Optional[IncidentStatus] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    incidents: IncidentService = Depends(get_incident_service),
) -> IncidentListEnvelope:
    return IncidentListEnvelope(
        message="Incidents retrieved successfully",
        incidents=incidents.list_all(current_user, status=status_filter),
    )


@router.get("/mine", response_model=IncidentListEnvelope)
def list_my_incidents(
    current_user: User = Depends(get_current_user),
    incidents: IncidentService = Depends(get_incident_service),
) -> IncidentListEnvelope:
    return IncidentListEnvelope(
        message="Incidents retrieved successfully",
        incidents=incidents.list_mine(current_user),
    )


@router.get("/{incident_id}", response_model=IncidentEnvelope)
def get_incident(
    incident_id: UUID,
    current_user: User = Depends(get_current_user),
    incidents: IncidentService = Depends(get_incident_service),
) -> IncidentEnvelope:
    return IncidentEnvelope(
        message="Incident retrieved successfully",
        incident=incidents.get_incident_for(current_user, incident_id),
    )


@router.post("/{incident_id}/approve", response_model=IncidentEnvelope)
def approve_incident(
    incident_id: UUID,
    payload: Optional[IncidentApproveRequest] = Body(None),
    current_user: User = Depends(get_current_user),
    incidents: IncidentService = Depends(get_incident_service),
) -> IncidentEnvelope:
    incident = incidents.approve(
        current_user,
        incident_id,
        ambulance_id=payload.ambulance_id if payload is not None else None,
    )
    return IncidentEnvelope(message="Incident approved and dispatched", incident=incident)


@router.post("/{incident_id}/revoke", response_model=IncidentEnvelope)
def revoke_incident(
    incident_id: UUID,
    current_user: User = Depends(get_current_user),
    incidents: IncidentService = Depends(get_incident_service),
) -> IncidentEnvelope:
    incident = incidents.revoke(current_user, incident_id)
    return IncidentEnvelope(message="Incident request denied", incident=incident)


@router.patch("/{incident_id}/status", response_model=IncidentEnvelope)
def patch_incident_status(
    incident_id: UUID,
    payload: IncidentStatusRequest,
    current_user: User = Depends(get_current_user),
    incidents: IncidentService = Depends(get_incident_service),
) -> IncidentEnvelope:
    incident = incidents.set_status(current_user, incident_id, payload.status)
    return IncidentEnvelope(message="Incident status updated", incident=incident)


@router.delete("/{incident_id}", response_model=MessageResponse)
def delete_incident(
    incident_id: UUID,
    _: User = Depends(get_current_admin),
    incidents: IncidentService = Depends(get_incident_service),
) -> MessageResponse:
    incidents.delete(incident_id)
    return MessageResponse(message="Incident deleted successfully")
