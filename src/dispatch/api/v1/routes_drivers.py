from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from src.dispatch.api.v1.envelopes import MessageResponse
from src.dispatch.domain.models.driver import DriverDetail
from src.dispatch.domain.models.user import User
from src.dispatch.infra.db.session import get_session
from src.dispatch.security import get_current_admin, get_current_user
from src.dispatch.services.drivers.service import DriverService


router = APIRouter(prefix="/drivers", tags=["drivers"])


def get_driver_service(session: Session = Depends(get_session)) -> DriverService:
    return DriverService(session)


class DriverCreateRequest(BaseModel):
    user_id: UUID
    license_number: str = Field(..., min_length=1)
    assigned_ambulance: Optional[UUID] = None


class DriverUpdateRequest(BaseModel):
    license_number: Optional[str] = Field(None, min_length=1)
    # Explicit null unassigns the driver; leaving the field out keeps it.
    assigned_ambulance: Optional[UUID] = None


class DriverEnvelope(BaseModel):
    message: str
    driver: DriverDetail


class DriverListEnvelope(BaseModel):
    message: str
    drivers: List[DriverDetail]


@router.post("", response_model=DriverEnvelope, status_code=status.HTTP_201_CREATED)
def create_driver(
    payload: DriverCreateRequest,
    _: User = Depends(get_current_admin),
    drivers: DriverService = Depends(get_driver_service),
) -> DriverEnvelope:
    driver = drivers.promote(
        user_id=payload.user_id,
        license_number=payload.license_number,
        assigned_ambulance=payload.assigned_ambulance,
    )
    return DriverEnvelope(message="Driver created successfully", driver=driver)


@router.get("", response_model=DriverListEnvelope)
def list_drivers(
    _: User = Depends(get_current_user),
    drivers: DriverService = Depends(get_driver_service),
) -> DriverListEnvelope:
    return DriverListEnvelope(message="Drivers retrieved successfully", drivers=drivers.list_drivers())


@router.get("/{driver_id}", response_model=DriverEnvelope)
def get_driver(
    driver_id: UUID,
    _: User = Depends(get_current_admin),
    drivers: DriverService = Depends(get_driver_service),
) -> DriverEnvelope:
    return DriverEnvelope(message="Driver retrieved successfully", driver=drivers.get_driver(driver_id))


@router.put("/{driver_id}", response_model=DriverEnvelope)
def update_driver(
    driver_id: UUID,
    payload: DriverUpdateRequest,
    _: User = Depends(get_current_admin),
    drivers: DriverService = Depends(get_driver_service),
) -> DriverEnvelope:
    driver = drivers.update(driver_id, payload.model_dump(exclude_unset=True))
    return DriverEnvelope(message="Driver updated successfully", driver=driver)


@router.delete("/{driver_id}", response_model=MessageResponse)
def revoke_driver(
    driver_id: UUID,
    _: User = Depends(get_current_admin),
    drivers: DriverService = Depends(get_driver_service),
) -> MessageResponse:
    drivers.revoke(driver_id)
    return MessageResponse(message="Driver role revoked, user reverted to regular user")
