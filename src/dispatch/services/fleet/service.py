from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from src.dispatch.domain.models.ambulance import Ambulance, AmbulanceStatus
from src.dispatch.domain.models.geo import LocationInput
from src.dispatch.errors import Conflict, NotFound, ValidationFailed
from src.dispatch.infra.db.session import commit
from src.dispatch.infra.db.sql_fleet import SqlAmbulanceRepository
from src.dispatch.infra.db.sql_incidents import SqlIncidentRepository
from src.dispatch.infra.db.sql_roles import SqlDriverRepository, SqlMedicRepository
from src.dispatch.services.audit.service import audit_service

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("license_plate", "status", "location")


class FleetService:
    """Ambulance registry."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._ambulances = SqlAmbulanceRepository(session)

    def create(
        self,
        *,
        license_plate: str,
        status: AmbulanceStatus,
        location: LocationInput,
        hospital_name: Optional[str] = None,
    ) -> Ambulance:
        point = location.to_point()
        if self._ambulances.plate_taken(license_plate):
            raise Conflict("License plate already in use")

        ambulance = Ambulance(
            id=uuid4(),
            license_plate=license_plate,
            status=status,
            hospital_name=hospital_name,
            location=point,
        )
        self._ambulances.save(ambulance)
        commit(self._session)

        logger.debug("Ambulance %s stored at %s", ambulance.id, point.coordinates)
        audit_service.log_event(
            action="create_ambulance",
            resource_type="ambulance",
            resource_id=str(ambulance.id),
            extra={"status": status.value},
        )
        return ambulance

    def list_ambulances(self, *, status: Optional[AmbulanceStatus] = None) -> List[Ambulance]:
        return list(self._ambulances.list_by_filters(status=status))

    def get_ambulance(self, ambulance_id: UUID) -> Ambulance:
        ambulance = self._ambulances.get(ambulance_id)
        if ambulance is None:
            raise NotFound("Ambulance not found")
        return ambulance

    def update(self, ambulance_id: UUID, changes: Dict[str, Any]) -> Ambulance:
        """Partial update of the keys present in ``changes``.

        ``hospital_name`` set to None clears the affiliation; the other fields
        are required and cannot be nulled.
        """

        for field in REQUIRED_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationFailed(f"{field} cannot be empty")
        ambulance = self.get_ambulance(ambulance_id)

        update: Dict[str, Any] = {}
        if "license_plate" in changes:
            license_plate = changes["license_plate"]
            if not license_plate:
                raise ValidationFailed("license_plate cannot be empty")
            if license_plate != ambulance.license_plate and self._ambulances.plate_taken(
                license_plate, exclude_id=ambulance_id
            ):
                raise Conflict("License plate already in use")
            update["license_plate"] = license_plate
        if "status" in changes:
            update["status"] = changes["status"]
        if "hospital_name" in changes:
            update["hospital_name"] = changes["hospital_name"]
        if "location" in changes:
            update["location"] = changes["location"].to_point()

        updated = ambulance.model_copy(update=update)
        self._ambulances.save(updated)
        commit(self._session)

        audit_service.log_event(
            action="update_ambulance",
            resource_type="ambulance",
            resource_id=str(ambulance_id),
            extra={"fields": sorted(update)},
        )
        return updated

    def delete(self, ambulance_id: UUID) -> None:
        """Delete an ambulance and clear every reference to it."""

        self.get_ambulance(ambulance_id)

        SqlDriverRepository(self._session).unassign_ambulance(ambulance_id)
        SqlMedicRepository(self._session).unassign_ambulance(ambulance_id)
        SqlIncidentRepository(self._session).detach_ambulance(ambulance_id)
        self._ambulances.delete(ambulance_id)
        commit(self._session)

        audit_service.log_event(action="delete_ambulance", resource_type="ambulance", resource_id=str(ambulance_id))
