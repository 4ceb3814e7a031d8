from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from src.dispatch.config import settings
from src.dispatch.domain.models.geo import LocationInput
from src.dispatch.domain.models.incident import (
    INCIDENT_TRANSITIONS,
    MAX_PRIORITY,
    MIN_PRIORITY,
    Incident,
    IncidentDetail,
    IncidentStatus,
)
from src.dispatch.domain.models.user import User, UserRole
from src.dispatch.errors import Conflict, NotFound, PermissionDenied, ValidationFailed
from src.dispatch.infra.db.session import commit
from src.dispatch.infra.db.sql_fleet import SqlAmbulanceRepository
from src.dispatch.infra.db.sql_incidents import SqlIncidentRepository
from src.dispatch.infra.db.sql_users import SqlUserRepository
from src.dispatch.security import ensure_has_role
from src.dispatch.services.audit.service import audit_service

logger = logging.getLogger(__name__)


class IncidentService:
    """Incident reports and their dispatcher-driven status changes.

    Only "approve twice" and "revoke twice" are rejected by default. Setting
    ``strict_transitions`` (STRICT_INCIDENT_TRANSITIONS) additionally checks
    every status change against INCIDENT_TRANSITIONS.
    """

    def __init__(self, session: Session, *, strict_transitions: Optional[bool] = None) -> None:
        self._session = session
        self._incidents = SqlIncidentRepository(session)
        self._users = SqlUserRepository(session)
        self._ambulances = SqlAmbulanceRepository(session)
        self._strict = settings.strict_incident_transitions if strict_transitions is None else strict_transitions

    def _require_role(self, actor: User, *roles: UserRole) -> User:
        # Re-read the account so a role changed after the credential was issued
        # is honoured.
        current = self._users.get(actor.id)
        if current is None:
            raise PermissionDenied()
        ensure_has_role(current, *roles)
        return current

    def _check_ambulance(self, ambulance_id: UUID) -> None:
        if self._ambulances.get(ambulance_id) is None:
            raise NotFound("Ambulance not found")

    def _load(self, incident_id: UUID) -> Incident:
        incident = self._incidents.get(incident_id)
        if incident is None:
            raise NotFound("Incident not found")
        return incident

    def _check_transition(self, incident: Incident, target: IncidentStatus) -> None:
        if not self._strict:
            return
        if target not in INCIDENT_TRANSITIONS[incident.status]:
            raise Conflict(
                f"Cannot change incident status from {incident.status.value} to {target.value}",
            )

    def _set_status(
        self,
        incident: Incident,
        target: IncidentStatus,
        *,
        action: str,
        ambulance_id: Optional[UUID] = None,
    ) -> IncidentDetail:
        update = {"status": target}
        if ambulance_id is not None:
            update["ambulance_id"] = ambulance_id
        self._incidents.save(incident.model_copy(update=update))
        commit(self._session)

        audit_service.log_event(
            action=action,
            resource_type="incident",
            resource_id=str(incident.id),
            extra={"from": incident.status.value, "to": target.value},
        )
        return self.get_incident(incident.id)

    def report(
        self,
        *,
        reporter: User,
        location: LocationInput,
        incident_type: str,
        priority: int,
        ambulance_id: Optional[UUID] = None,
    ) -> IncidentDetail:
        if not MIN_PRIORITY <= priority <= MAX_PRIORITY:
            raise ValidationFailed(f"priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}")
        point = location.to_point()

        user = self._users.get(reporter.id)
        if user is None:
            raise NotFound("User not found")
        if ambulance_id is not None:
            self._check_ambulance(ambulance_id)

        incident = Incident(
            id=uuid4(),
            user_id=user.id,
            phone=user.phone_number_1,
            location=point,
            incident_type=incident_type,
            priority=priority,
            status=IncidentStatus.PENDING,
            reported_time=datetime.now(timezone.utc),
            ambulance_id=ambulance_id,
        )
        self._incidents.save(incident)
        commit(self._session)

        audit_service.log_event(
            action="report_incident",
            resource_type="incident",
            resource_id=str(incident.id),
            extra={"priority": priority, "incident_type": incident_type},
        )
        return self.get_incident(incident.id)

    def get_incident(self, incident_id: UUID) -> IncidentDetail:
        detail = self._incidents.get_detail(incident_id)
        if detail is None:
            raise NotFound("Incident not found")
        return detail

    def get_incident_for(self, actor: User, incident_id: UUID) -> IncidentDetail:
        """Return an incident visible to admins, dispatchers and its reporter."""

        detail = self.get_incident(incident_id)
        if actor.role in {UserRole.ADMIN, UserRole.DISPATCHER}:
            return detail
        if detail.user is not None and detail.user.id == actor.id:
            return detail
        raise PermissionDenied()

    def list_mine(self, actor: User) -> List[IncidentDetail]:
        return list(self._incidents.list_by_filters(user_id=actor.id))

    def list_all(self, actor: User, *, status: Optional[IncidentStatus] = None) -> List[IncidentDetail]:
        self._require_role(actor, UserRole.ADMIN, UserRole.DISPATCHER)
        return list(self._incidents.list_by_filters(status=status))

    def approve(self, actor: User, incident_id: UUID, *, ambulance_id: Optional[UUID] = None) -> IncidentDetail:
        self._require_role(actor, UserRole.DISPATCHER)
        incident = self._load(incident_id)
        if incident.status == IncidentStatus.DISPATCHED:
            raise Conflict("Incident already dispatched")
        self._check_transition(incident, IncidentStatus.DISPATCHED)
        if ambulance_id is not None:
            self._check_ambulance(ambulance_id)
        return self._set_status(
            incident,
            IncidentStatus.DISPATCHED,
            action="approve_incident",
            ambulance_id=ambulance_id,
        )

    def revoke(self, actor: User, incident_id: UUID) -> IncidentDetail:
        self._require_role(actor, UserRole.DISPATCHER)
        incident = self._load(incident_id)
        if incident.status == IncidentStatus.REQUEST_DENIED:
            raise Conflict("Incident request already denied")
        self._check_transition(incident, IncidentStatus.REQUEST_DENIED)
        return self._set_status(incident, IncidentStatus.REQUEST_DENIED, action="revoke_incident")

    def set_status(self, actor: User, incident_id: UUID, status: IncidentStatus) -> IncidentDetail:
        """Set any status value.

        Skips the approve/revoke guards unless strict transitions are on.
        """

        self._require_role(actor, UserRole.DISPATCHER, UserRole.ADMIN)
        incident = self._load(incident_id)
        self._check_transition(incident, status)
        if not self._strict:
            logger.info(
                "Incident %s status patched %s -> %s without transition checks",
                incident_id,
                incident.status.value,
                status.value,
            )
        return self._set_status(incident, status, action="patch_incident_status")

    def delete(self, incident_id: UUID) -> None:
        if not self._incidents.delete(incident_id):
            raise NotFound("Incident not found")
        commit(self._session)
        audit_service.log_event(action="delete_incident", resource_type="incident", resource_id=str(incident_id))
