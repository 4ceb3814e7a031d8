from __future__ import annotations

from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from src.dispatch.domain.models.ambulance import Ambulance, AmbulanceStatus
from src.dispatch.infra.db.models import AmbulanceORM
from src.dispatch.infra.db.repositories import AmbulanceRepository


class SqlAmbulanceRepository(AmbulanceRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, ambulance_id: UUID) -> Optional[Ambulance]:
        orm = self._session.get(AmbulanceORM, ambulance_id)
        return orm.to_domain() if orm is not None else None

    def plate_taken(self, license_plate: str, *, exclude_id: Optional[UUID] = None) -> bool:
        query = select(AmbulanceORM.id).where(AmbulanceORM.license_plate == license_plate)
        if exclude_id is not None:
            query = query.where(AmbulanceORM.id != exclude_id)
        return self._session.scalars(query).first() is not None

    def list_by_filters(self, *, status: Optional[AmbulanceStatus] = None) -> Iterable[Ambulance]:
        query = select(AmbulanceORM).order_by(AmbulanceORM.license_plate)
        if status is not None:
            query = query.where(AmbulanceORM.status == status.value)
        for orm in self._session.scalars(query):
            yield orm.to_domain()

    def save(self, ambulance: Ambulance) -> None:
        existing = self._session.get(AmbulanceORM, ambulance.id)
        if existing is None:
            self._session.add(AmbulanceORM.from_domain(ambulance))
        else:
            existing.apply(ambulance)

    def delete(self, ambulance_id: UUID) -> bool:
        result = self._session.execute(delete(AmbulanceORM).where(AmbulanceORM.id == ambulance_id))
        return result.rowcount > 0
