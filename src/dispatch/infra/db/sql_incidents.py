from __future__ import annotations

from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from src.dispatch.domain.models.incident import Incident, IncidentDetail, IncidentStatus
from src.dispatch.infra.db.models import IncidentORM
from src.dispatch.infra.db.repositories import IncidentRepository


class SqlIncidentRepository(IncidentRepository):
    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, incident_id: UUID) -> Optional[Incident]:
        orm = self._session.get(IncidentORM, incident_id)
        return orm.to_domain() if orm is not None else None

    def get_detail(self, incident_id: UUID) -> Optional[IncidentDetail]:
        orm = self._session.get(IncidentORM, incident_id)
        return orm.to_detail() if orm is not None else None

    def list_by_filters(
        self,
        *,
        user_id: Optional[UUID] = None,
        status: Optional[IncidentStatus] = None,
    ) -> Iterable[IncidentDetail]:
        query = select(IncidentORM).order_by(IncidentORM.reported_time.desc())
        if user_id is not None:
            query = query.where(IncidentORM.user_id == user_id)
        if status is not None:
            query = query.where(IncidentORM.status == status.value)
        for orm in self._session.scalars(query):
            yield orm.to_detail()

    def save(self, incident: Incident) -> None:
        existing = self._session.get(IncidentORM, incident.id)
        if existing is None:
            self._session.add(IncidentORM.from_domain(incident))
        else:
            existing.apply(incident)

    def delete(self, incident_id: UUID) -> bool:
        result = self._session.execute(delete(IncidentORM).where(IncidentORM.id == incident_id))
        return result.rowcount > 0

    def detach_user(self, user_id: UUID) -> int:
        result = self._session.execute(
            update(IncidentORM).where(IncidentORM.user_id == user_id).values(user_id=None)
        )
        return result.rowcount

    def detach_ambulance(self, ambulance_id: UUID) -> int:
        result = self._session.execute(
            update(IncidentORM).where(IncidentORM.ambulance_id == ambulance_id).values(ambulance_id=None)
        )
        return result.rowcount
