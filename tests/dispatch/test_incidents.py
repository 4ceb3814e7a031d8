from fastapi import status

from src.dispatch.config import settings
from tests.dispatch.helpers import auth_headers, login, register

INCIDENT = {"location": {"coordinates": [9.01, 38.76]}, "incident_type": "cardiac", "priority": 1}


async def _report(client, headers, **overrides):
    body = dict(INCIDENT)
    body.update(overrides)
    return await client.post("/api/v1/incidents", json=body, headers=headers)


async def test_report_incident_snapshots_reporter(client):
    user, headers = await auth_headers(client)

    response = await _report(client, headers)
    assert response.status_code == status.HTTP_201_CREATED
    payload = response.json()
    assert payload["message"] == "Incident reported successfully"
    incident = payload["incident"]
    assert incident["status"] == "pending"
    assert incident["phone"] == user["phone_number_1"]
    assert incident["user"]["id"] == user["id"]
    assert incident["location"] == {"type": "Point", "coordinates": [38.76, 9.01]}
    assert incident["reported_time"]
    assert incident["ambulance"] is None


async def test_report_validates_priority_and_location(client):
    _, headers = await auth_headers(client)

    response = await _report(client, headers, priority=6)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = await _report(client, headers, location={"coordinates": [100, 200]})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Invalid coordinates"

    response = await _report(client, headers, ambulance_id="00000000-0000-0000-0000-000000000000")
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_report_requires_token(client):
    response = await client.post("/api/v1/incidents", json=INCIDENT)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


async def test_list_mine_only_shows_own_incidents(client):
    _, headers = await auth_headers(client)
    _, other_headers = await auth_headers(client)
    await _report(client, headers, incident_type="fire")
    await _report(client, headers, incident_type="accident")
    await _report(client, other_headers)

    response = await client.get("/api/v1/incidents/mine", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    types = [i["incident_type"] for i in response.json()["incidents"]]
    # Newest first.
    assert types == ["accident", "fire"]


async def test_list_all_requires_dispatcher_or_admin(client):
    _, headers = await auth_headers(client)
    _, dispatcher_headers = await auth_headers(client, role="dispatcher")
    await _report(client, headers)

    response = await client.get("/api/v1/incidents", headers=headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = await client.get("/api/v1/incidents", headers=dispatcher_headers)
    assert response.status_code == status.HTTP_200_OK
    assert len(response.json()["incidents"]) == 1

    response = await client.get("/api/v1/incidents", params={"status": "dispatched"}, headers=dispatcher_headers)
    assert response.json()["incidents"] == []


async def test_get_incident_visibility(client):
    _, headers = await auth_headers(client)
    _, other_headers = await auth_headers(client)
    _, dispatcher_headers = await auth_headers(client, role="dispatcher")
    incident_id = (await _report(client, headers)).json()["incident"]["id"]

    assert (await client.get(f"/api/v1/incidents/{incident_id}", headers=headers)).status_code == 200
    assert (await client.get(f"/api/v1/incidents/{incident_id}", headers=dispatcher_headers)).status_code == 200
    assert (await client.get(f"/api/v1/incidents/{incident_id}", headers=other_headers)).status_code == 403


async def test_approve_dispatches_once(client):
    _, headers = await auth_headers(client)
    _, dispatcher_headers = await auth_headers(client, role="dispatcher")
    incident_id = (await _report(client, headers)).json()["incident"]["id"]

    response = await client.post(f"/api/v1/incidents/{incident_id}/approve", headers=dispatcher_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["incident"]["status"] == "dispatched"

    response = await client.post(f"/api/v1/incidents/{incident_id}/approve", headers=dispatcher_headers)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["message"] == "Incident already dispatched"


async def test_approve_can_attach_ambulance(client):
    _, admin_headers = await auth_headers(client, role="admin")
    ambulance = (
        await client.post(
            "/api/v1/ambulances",
            json={"license_plate": "AMB-1", "status": "available", "location": {"coordinates": [9.0, 38.7]}},
            headers=admin_headers,
        )
    ).json()["ambulance"]
    _, headers = await auth_headers(client)
    _, dispatcher_headers = await auth_headers(client, role="dispatcher")
    incident_id = (await _report(client, headers)).json()["incident"]["id"]

    response = await client.post(
        f"/api/v1/incidents/{incident_id}/approve",
        json={"ambulance_id": ambulance["id"]},
        headers=dispatcher_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["incident"]["ambulance"]["license_plate"] == "AMB-1"


async def test_approve_and_revoke_are_dispatcher_only(client):
    _, headers = await auth_headers(client)
    _, admin_headers = await auth_headers(client, role="admin")
    incident_id = (await _report(client, headers)).json()["incident"]["id"]

    response = await client.post(f"/api/v1/incidents/{incident_id}/approve", headers=admin_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["message"] == "Access denied. Requires role: dispatcher."

    response = await client.post(f"/api/v1/incidents/{incident_id}/revoke", headers=headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN


async def test_revoke_twice_conflicts(client):
    _, headers = await auth_headers(client)
    _, dispatcher_headers = await auth_headers(client, role="dispatcher")
    incident_id = (await _report(client, headers)).json()["incident"]["id"]

    response = await client.post(f"/api/v1/incidents/{incident_id}/revoke", headers=dispatcher_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["incident"]["status"] == "request-denied"

    response = await client.post(f"/api/v1/incidents/{incident_id}/revoke", headers=dispatcher_headers)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["message"] == "Incident request already denied"


async def test_stale_dispatcher_token_is_refused(client):
    _, headers = await auth_headers(client)
    _, admin_headers = await auth_headers(client, role="admin")
    dispatcher = await register(client, role="dispatcher")
    dispatcher_headers = {"Authorization": f"Bearer {await login(client, dispatcher['email'])}"}
    incident_id = (await _report(client, headers)).json()["incident"]["id"]

    # Demote after the credential was issued.
    await client.put(f"/api/v1/users/{dispatcher['id']}", json={"role": "user"}, headers=admin_headers)

    response = await client.post(f"/api/v1/incidents/{incident_id}/approve", headers=dispatcher_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN


async def test_status_patch_is_unguarded_by_default(client):
    _, headers = await auth_headers(client)
    _, dispatcher_headers = await auth_headers(client, role="dispatcher")
    incident_id = (await _report(client, headers)).json()["incident"]["id"]

    response = await client.patch(
        f"/api/v1/incidents/{incident_id}/status",
        json={"status": "resolved"},
        headers=dispatcher_headers,
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["incident"]["status"] == "resolved"

    response = await client.patch(
        f"/api/v1/incidents/{incident_id}/status",
        json={"status": "pending"},
        headers=dispatcher_headers,
    )
    assert response.status_code == status.HTTP_200_OK

    response = await client.patch(
        f"/api/v1/incidents/{incident_id}/status",
        json={"status": "closed"},
        headers=dispatcher_headers,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_strict_transitions(client, monkeypatch):
    monkeypatch.setattr(settings, "strict_incident_transitions", True)
    _, headers = await auth_headers(client)
    _, dispatcher_headers = await auth_headers(client, role="dispatcher")
    incident_id = (await _report(client, headers)).json()["incident"]["id"]

    response = await client.patch(
        f"/api/v1/incidents/{incident_id}/status",
        json={"status": "resolved"},
        headers=dispatcher_headers,
    )
    assert response.status_code == status.HTTP_409_CONFLICT

    response = await client.post(f"/api/v1/incidents/{incident_id}/revoke", headers=dispatcher_headers)
    assert response.status_code == status.HTTP_200_OK

    response = await client.post(f"/api/v1/incidents/{incident_id}/approve", headers=dispatcher_headers)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["message"] == "Cannot change incident status from request-denied to dispatched"


async def test_delete_incident_is_admin_only(client):
    _, headers = await auth_headers(client)
    _, admin_headers = await auth_headers(client, role="admin")
    incident_id = (await _report(client, headers)).json()["incident"]["id"]

    response = await client.delete(f"/api/v1/incidents/{incident_id}", headers=headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = await client.delete(f"/api/v1/incidents/{incident_id}", headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK

    response = await client.delete(f"/api/v1/incidents/{incident_id}", headers=admin_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["message"] == "Incident not found"


async def test_incident_survives_reporter_deletion(client):
    user, headers = await auth_headers(client)
    _, admin_headers = await auth_headers(client, role="admin")
    incident_id = (await _report(client, headers)).json()["incident"]["id"]

    await client.delete(f"/api/v1/users/{user['id']}", headers=admin_headers)

    response = await client.get(f"/api/v1/incidents/{incident_id}", headers=admin_headers)
    assert response.status_code == status.HTTP_200_OK
    incident = response.json()["incident"]
    assert incident["user"] is None
    assert incident["phone"] == user["phone_number_1"]
