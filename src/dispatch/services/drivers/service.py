from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from src.dispatch.domain.models.driver import Driver, DriverDetail
from src.dispatch.domain.models.user import UserRole
from src.dispatch.errors import Conflict, NotFound, ValidationFailed
from src.dispatch.infra.db.session import commit
from src.dispatch.infra.db.sql_fleet import SqlAmbulanceRepository
from src.dispatch.infra.db.sql_roles import SqlDriverRepository, SqlMedicRepository
from src.dispatch.infra.db.sql_users import SqlUserRepository
from src.dispatch.services.audit.service import audit_service


class DriverService:
    """Promotes users to drivers and revokes them again.

    The user's role and the driver record are always written in the same
    transaction, so a user is a driver exactly when a driver record exists.
    """

    def __init__(self, session: Session) -> None:
        self._session = session
        self._users = SqlUserRepository(session)
        self._drivers = SqlDriverRepository(session)
        self._ambulances = SqlAmbulanceRepository(session)

    def _check_ambulance(self, ambulance_id: UUID, *, driver_id: Optional[UUID] = None) -> None:
        if self._ambulances.get(ambulance_id) is None:
            raise NotFound("Ambulance not found")
        holder = self._drivers.get_by_ambulance(ambulance_id)
        if holder is not None and holder.id != driver_id:
            raise Conflict("Ambulance already assigned to another driver")

    def promote(
        self,
        *,
        user_id: UUID,
        license_number: str,
        assigned_ambulance: Optional[UUID] = None,
    ) -> DriverDetail:
        user = self._users.get(user_id)
        if user is None:
            raise NotFound("User not found")
        # An existing driver record is what counts here, not the role string.
        if self._drivers.get_by_user(user_id) is not None:
            raise Conflict("User is already a driver")
        if SqlMedicRepository(self._session).get_by_user(user_id) is not None:
            raise Conflict("User holds a medic record; revoke it first")
        if self._drivers.license_taken(license_number):
            raise Conflict("License number already in use")
        if assigned_ambulance is not None:
            self._check_ambulance(assigned_ambulance)

        driver = Driver(
            id=uuid4(),
            user_id=user_id,
            license_number=license_number,
            assigned_ambulance_id=assigned_ambulance,
        )
        previous_role = user.role
        self._users.save(user.model_copy(update={"role": UserRole.DRIVER}))
        self._drivers.save(driver)
        commit(self._session)

        audit_service.log_event(
            action="promote_driver",
            resource_type="driver",
            resource_id=str(driver.id),
            extra={"user_id": str(user_id), "previous_role": previous_role.value},
        )
        return self.get_driver(driver.id)

    def list_drivers(self) -> List[DriverDetail]:
        return self._drivers.list_details()

    def get_driver(self, driver_id: UUID) -> DriverDetail:
        detail = self._drivers.get_detail(driver_id)
        if detail is None:
            raise NotFound("Driver not found")
        return detail

    def update(self, driver_id: UUID, changes: Dict[str, Any]) -> DriverDetail:
        """Partial update of ``license_number`` and ``assigned_ambulance``.

        ``assigned_ambulance`` set to None unassigns the driver.
        """

        driver = self._drivers.get(driver_id)
        if driver is None:
            raise NotFound("Driver not found")

        update: Dict[str, Any] = {}
        if "license_number" in changes:
            license_number = changes["license_number"]
            if not license_number:
                raise ValidationFailed("license_number cannot be empty")
            if license_number != driver.license_number and self._drivers.license_taken(
                license_number, exclude_id=driver_id
            ):
                raise Conflict("License number already in use")
            update["license_number"] = license_number
        if "assigned_ambulance" in changes:
            ambulance_id = changes["assigned_ambulance"]
            if ambulance_id is not None:
                self._check_ambulance(ambulance_id, driver_id=driver_id)
            update["assigned_ambulance_id"] = ambulance_id

        self._drivers.save(driver.model_copy(update=update))
        commit(self._session)

        audit_service.log_event(
            action="update_driver",
            resource_type="driver",
            resource_id=str(driver_id),
            extra={"fields": sorted(update)},
        )
        return self.get_driver(driver_id)

    def revoke(self, driver_id: UUID) -> None:
        """Delete the driver record and turn its owner back into a plain user."""

        driver = self._drivers.get(driver_id)
        if driver is None:
            raise NotFound("Driver not found")

        user = self._users.get(driver.user_id)
        if user is not None and user.role == UserRole.DRIVER:
            self._users.save(user.model_copy(update={"role": UserRole.USER}))
        self._drivers.delete(driver_id)
        commit(self._session)

        audit_service.log_event(
            action="revoke_driver",
            resource_type="driver",
            resource_id=str(driver_id),
            extra={"user_id": str(driver.user_id)},
        )
