from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from src.dispatch.domain.models.medic import Medic, MedicDetail
from src.dispatch.domain.models.user import UserRole
from src.dispatch.errors import Conflict, NotFound
from src.dispatch.infra.db.session import commit
from src.dispatch.infra.db.sql_fleet import SqlAmbulanceRepository
from src.dispatch.infra.db.sql_roles import SqlDriverRepository, SqlMedicRepository
from src.dispatch.infra.db.sql_users import SqlUserRepository
from src.dispatch.services.audit.service import audit_service


class MedicService:
    def __init__(self, session: Session) -> None:
        self._session = session
        self._users = SqlUserRepository(session)
        self._medics = SqlMedicRepository(session)
        self._ambulances = SqlAmbulanceRepository(session)

    def _check_ambulance(self, ambulance_id: UUID) -> None:
        if self._ambulances.get(ambulance_id) is None:
            raise NotFound("Ambulance not found")

    def promote(
        self,
        *,
        user_id: UUID,
        specialty: Optional[str] = None,
        assigned_ambulance: Optional[UUID] = None,
    ) -> MedicDetail:
        """Turn a user into a medic.

        Unlike drivers, the "already a medic" check looks at the user's role.
        A stale medic record for the same user still fails on the unique
        constraint at commit.
        """

        user = self._users.get(user_id)
        if user is None:
            raise NotFound("User not found")
        if user.role == UserRole.MEDIC:
            raise Conflict("User is already a medic")
        if SqlDriverRepository(self._session).get_by_user(user_id) is not None:
            raise Conflict("User holds a driver record; revoke it first")
        if assigned_ambulance is not None:
            self._check_ambulance(assigned_ambulance)

        medic = Medic(
            id=uuid4(),
            user_id=user.id,
            name=user.name,
            phone=user.phone_number_1,
            specialty=specialty,
            assigned_ambulance_id=assigned_ambulance,
        )
        self._users.save(user.model_copy(update={"role": UserRole.MEDIC}))
        self._medics.save(medic)
        commit(self._session)

        audit_service.log_event(
            action="promote_medic",
            resource_type="medic",
            resource_id=str(medic.id),
            extra={"user_id": str(user.id), "previous_role": user.role.value},
        )
        return self.get_medic(medic.id)

    def list_medics(self) -> List[MedicDetail]:
        return self._medics.list_details()

    def get_medic(self, medic_id: UUID) -> MedicDetail:
        detail = self._medics.get_detail(medic_id)
        if detail is None:
            raise NotFound("Medic not found")
        return detail

    def update(self, medic_id: UUID, changes: Dict[str, Any]) -> MedicDetail:
        medic = self._medics.get(medic_id)
        if medic is None:
            raise NotFound("Medic not found")

        update: Dict[str, Any] = {}
        if "specialty" in changes:
            update["specialty"] = changes["specialty"]
        if "assigned_ambulance" in changes:
            ambulance_id = changes["assigned_ambulance"]
            if ambulance_id is not None:
                self._check_ambulance(ambulance_id)
            update["assigned_ambulance_id"] = ambulance_id

        self._medics.save(medic.model_copy(update=update))
        commit(self._session)

        audit_service.log_event(
            action="update_medic",
            resource_type="medic",
            resource_id=str(medic_id),
            extra={"fields": sorted(update)},
        )
        return self.get_medic(medic_id)

    def revoke(self, medic_id: UUID) -> None:
        medic = self._medics.get(medic_id)
        if medic is None:
            raise NotFound("Medic not found")

        user = self._users.get(medic.user_id)
        if user is not None and user.role == UserRole.MEDIC:
            self._users.save(user.model_copy(update={"role": UserRole.USER}))
        self._medics.delete(medic_id)
        commit(self._session)

        audit_service.log_event(
            action="revoke_medic",
            resource_type="medic",
            resource_id=str(medic_id),
            extra={"user_id": str(medic.user_id)},
        )
