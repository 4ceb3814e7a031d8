from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from src.dispatch.api.v1.envelopes import MessageResponse
from src.dispatch.domain.models.medic import MedicDetail
from src.dispatch.domain.models.user import User
from src.dispatch.infra.db.session import get_session
from src.dispatch.security import get_current_admin, get_current_user
from src.dispatch.services.medics.service import MedicService


router = APIRouter(prefix="/medics", tags=["medics"])


def get_medic_service(session: Session = Depends(get_session)) -> MedicService:
    return MedicService(session)


class MedicCreateRequest(BaseModel):
    user_id: UUID
    specialty: Optional[str] = None
    assigned_ambulance: Optional[UUID] = None


class MedicUpdateRequest(BaseModel):
    specialty: Optional[str] = None
    assigned_ambulance: Optional[UUID] = None


class MedicEnvelope(BaseModel):
    message: str
    medic: MedicDetail


class MedicListEnvelope(BaseModel):
    message: str
    medics: List[MedicDetail]


@router.post("", response_model=MedicEnvelope, status_code=status.HTTP_201_CREATED)
def create_medic(
    payload: MedicCreateRequest,
    _: User = Depends(get_current_admin),
    medics: MedicService = Depends(get_medic_service),
) -> MedicEnvelope:
    medic = medics.promote(
        user_id=payload.user_id,
        specialty=payload.specialty,
        assigned_ambulance=payload.assigned_ambulance,
    )
    return MedicEnvelope(message="Medic created successfully", medic=medic)


# Medic listings carry phone numbers, so reads need a valid credential.
@router.get("", response_model=MedicListEnvelope)
def list_medics(
    _: User = Depends(get_current_user),
    medics: MedicService = Depends(get_medic_service),
) -> MedicListEnvelope:
    return MedicListEnvelope(message="Medics retrieved successfully", medics=medics.list_medics())


@router.get("/{medic_id}", response_model=MedicEnvelope)
def get_medic(
    medic_id: UUID,
    _: User = Depends(get_current_user),
    medics: MedicService = Depends(get_medic_service),
) -> MedicEnvelope:
    return MedicEnvelope(message="Medic retrieved successfully", medic=medics.get_medic(medic_id))


@router.put("/{medic_id}", response_model=MedicEnvelope)
def update_medic(
    medic_id: UUID,
    payload: MedicUpdateRequest,
    _: User = Depends(get_current_admin),
    medics: MedicService = Depends(get_medic_service),
) -> MedicEnvelope:
    medic = medics.update(medic_id, payload.model_dump(exclude_unset=True))
    return MedicEnvelope(message="Medic updated successfully", medic=medic)


@router.delete("/{medic_id}", response_model=MessageResponse)
def revoke_medic(
    medic_id: UUID,
    _: User = Depends(get_current_admin),
    medics: MedicService = Depends(get_medic_service),
) -> MessageResponse:
    medics.revoke(medic_id)
    return MessageResponse(message="Medic role revoked, user reverted to regular user")
