import logging

import pytest
from sqlalchemy import text

from src.dispatch.domain.models.ambulance import AmbulanceStatus
from src.dispatch.domain.models.geo import LocationInput
from src.dispatch.domain.models.incident import IncidentStatus
from src.dispatch.domain.models.user import UserRole
from src.dispatch.errors import Conflict, PermissionDenied
from src.dispatch.infra.db import session as db_session
from src.dispatch.infra.db.session import get_session_factory
from src.dispatch.services.drivers.service import DriverService
from src.dispatch.services.fleet.service import FleetService
from src.dispatch.services.incidents.service import IncidentService
from src.dispatch.services.medics.service import MedicService
from src.dispatch.services.users.service import UserService


@pytest.fixture
def session():
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def _user(session, role=UserRole.USER, suffix="1"):
    return UserService(session).register(
        name=f"User {suffix}",
        role=role,
        email=f"user{suffix}@example.com",
        password="pw",
        phone_number_1=f"+1555000{suffix}",
    )


def test_leftover_medic_record_conflicts_and_rolls_back(session):
    user = _user(session)
    medics = MedicService(session)
    medics.promote(user_id=user.id, specialty="paramedic")

    # Role reset by hand, medic record left behind.
    users = UserService(session)
    users.update_user(user.id, {"role": UserRole.USER})

    with pytest.raises(Conflict):
        medics.promote(user_id=user.id)

    # The role change from the failed promotion was rolled back with it.
    assert users.get_user(user.id).role == UserRole.USER
    assert len(medics.list_medics()) == 1


def test_delete_user_cleans_up_role_records_in_one_commit(session):
    user = _user(session)
    DriverService(session).promote(user_id=user.id, license_number="LIC-1")
    reporter = _user(session, suffix="2")
    incident = IncidentService(session).report(
        reporter=reporter,
        location=LocationInput(coordinates=[9.0, 38.7]),
        incident_type="fall",
        priority=3,
    )

    UserService(session).delete_user(user.id)
    UserService(session).delete_user(reporter.id)

    assert DriverService(session).list_drivers() == []
    detail = IncidentService(session).get_incident(incident.id)
    assert detail.user is None
    assert detail.phone == reporter.phone_number_1


def test_fleet_delete_detaches_incidents(session):
    ambulance = FleetService(session).create(
        license_plate="AMB-1",
        status=AmbulanceStatus.AVAILABLE,
        location=LocationInput(latitude=9.0, longitude=38.7),
    )
    reporter = _user(session)
    incident = IncidentService(session).report(
        reporter=reporter,
        location=LocationInput(coordinates=[9.0, 38.7]),
        incident_type="fall",
        priority=2,
        ambulance_id=ambulance.id,
    )
    assert incident.ambulance is not None

    FleetService(session).delete(ambulance.id)

    assert IncidentService(session).get_incident(incident.id).ambulance is None


def test_status_patch_requires_current_role(session):
    reporter = _user(session)
    dispatcher = _user(session, role=UserRole.DISPATCHER, suffix="2")
    incidents = IncidentService(session, strict_transitions=False)
    incident = incidents.report(
        reporter=reporter,
        location=LocationInput(coordinates=[9.0, 38.7]),
        incident_type="fall",
        priority=2,
    )

    with pytest.raises(PermissionDenied):
        incidents.set_status(reporter, incident.id, IncidentStatus.RESOLVED)

    # A stale in-memory role does not help once the stored role changed.
    UserService(session).update_user(dispatcher.id, {"role": UserRole.USER})
    with pytest.raises(PermissionDenied):
        incidents.set_status(dispatcher, incident.id, IncidentStatus.RESOLVED)


def test_strict_mode_rejects_resolved_to_dispatched(session):
    reporter = _user(session)
    dispatcher = _user(session, role=UserRole.DISPATCHER, suffix="2")
    incidents = IncidentService(session, strict_transitions=True)
    incident = incidents.report(
        reporter=reporter,
        location=LocationInput(coordinates=[9.0, 38.7]),
        incident_type="fall",
        priority=2,
    )

    incidents.approve(dispatcher, incident.id)
    incidents.set_status(dispatcher, incident.id, IncidentStatus.RESOLVED)

    with pytest.raises(Conflict):
        incidents.approve(dispatcher, incident.id)
    with pytest.raises(Conflict):
        incidents.set_status(dispatcher, incident.id, IncidentStatus.PENDING)


def test_state_changes_are_audited(session, caplog):
    with caplog.at_level(logging.INFO, logger="audit"):
        user = _user(session)
    records = [r.getMessage() for r in caplog.records if r.name == "audit"]
    assert any('"action": "register_user"' in message for message in records)
    assert all("password" not in message for message in records)
    assert str(user.id) in records[-1]


def test_revoke_keeps_a_role_changed_since_promotion(session):
    user = _user(session)
    driver = DriverService(session).promote(user_id=user.id, license_number="LIC-1")
    UserService(session).update_user(user.id, {"role": UserRole.DISPATCHER})

    DriverService(session).revoke(driver.id)

    assert UserService(session).get_user(user.id).role == UserRole.DISPATCHER
    assert DriverService(session).list_drivers() == []


def test_session_factory_is_built_on_first_use(monkeypatch):
    monkeypatch.setattr(db_session, "_engine", None)
    monkeypatch.setattr(db_session, "_session_factory", None)

    factory = db_session.get_session_factory()

    assert factory is db_session.get_session_factory()
    assert db_session.get_engine() is db_session._engine
    with factory() as fresh:
        assert fresh.execute(text("select 1")).scalar() == 1
