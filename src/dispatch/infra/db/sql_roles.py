from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from src.dispatch.domain.models.driver import Driver, DriverDetail
from src.dispatch.domain.models.medic import Medic, MedicDetail
from src.dispatch.infra.db.models import DriverORM, MedicORM
from src.dispatch.infra.db.repositories import DriverRepository, MedicRepository


class SqlDriverRepository(DriverRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, driver_id: UUID) -> Optional[Driver]:
        orm = self._session.get(DriverORM, driver_id)
        return orm.to_domain() if orm is not None else None

    def get_detail(self, driver_id: UUID) -> Optional[DriverDetail]:
        orm = self._session.get(DriverORM, driver_id)
        return orm.to_detail() if orm is not None else None

    def get_by_user(self, user_id: UUID) -> Optional[Driver]:
        orm = self._session.scalars(select(DriverORM).where(DriverORM.user_id == user_id)).first()
        return orm.to_domain() if orm is not None else None

    def license_taken(self, license_number: str, *, exclude_id: Optional[UUID] = None) -> bool:
        query = select(DriverORM.id).where(DriverORM.license_number == license_number)
        if exclude_id is not None:
            query = query.where(DriverORM.id != exclude_id)
        return self._session.scalars(query).first() is not None

    def get_by_ambulance(self, ambulance_id: UUID) -> Optional[Driver]:
        orm = self._session.scalars(
            select(DriverORM).where(DriverORM.assigned_ambulance_id == ambulance_id)
        ).first()
        return orm.to_domain() if orm is not None else None

    def list_details(self) -> List[DriverDetail]:
        return [orm.to_detail() for orm in self._session.scalars(select(DriverORM))]

    def save(self, driver: Driver) -> None:
        existing = self._session.get(DriverORM, driver.id)
        if existing is None:
            self._session.add(DriverORM.from_domain(driver))
        else:
            existing.apply(driver)

    def delete(self, driver_id: UUID) -> bool:
        result = self._session.execute(delete(DriverORM).where(DriverORM.id == driver_id))
        return result.rowcount > 0

    def delete_for_user(self, user_id: UUID) -> int:
        result = self._session.execute(delete(DriverORM).where(DriverORM.user_id == user_id))
        return result.rowcount

    def unassign_ambulance(self, ambulance_id: UUID) -> int:
        result = self._session.execute(
            update(DriverORM)
            .where(DriverORM.assigned_ambulance_id == ambulance_id)
            .values(assigned_ambulance_id=None)
        )
        return result.rowcount


class SqlMedicRepository(MedicRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, medic_id: UUID) -> Optional[Medic]:
        orm = self._session.get(MedicORM, medic_id)
        return orm.to_domain() if orm is not None else None

    def get_detail(self, medic_id: UUID) -> Optional[MedicDetail]:
        orm = self._session.get(MedicORM, medic_id)
        return orm.to_detail() if orm is not None else None

    def get_by_user(self, user_id: UUID) -> Optional[Medic]:
        orm = self._session.scalars(select(MedicORM).where(MedicORM.user_id == user_id)).first()
        return orm.to_domain() if orm is not None else None

    def list_details(self) -> List[MedicDetail]:
        return [orm.to_detail() for orm in self._session.scalars(select(MedicORM).order_by(MedicORM.name))]

    def save(self, medic: Medic) -> None:
        existing = self._session.get(MedicORM, medic.id)
        if existing is None:
            self._session.add(MedicORM.from_domain(medic))
        else:
            existing.apply(medic)

    def delete(self, medic_id: UUID) -> bool:
        result = self._session.execute(delete(MedicORM).where(MedicORM.id == medic_id))
        return result.rowcount > 0

    def delete_for_user(self, user_id: UUID) -> int:
        result = self._session.execute(delete(MedicORM).where(MedicORM.user_id == user_id))
        return result.rowcount

    def unassign_ambulance(self, ambulance_id: UUID) -> int:
        result = self._session.execute(
            update(MedicORM)
            .where(MedicORM.assigned_ambulance_id == ambulance_id)
            .values(assigned_ambulance_id=None)
        )
        return result.rowcount
