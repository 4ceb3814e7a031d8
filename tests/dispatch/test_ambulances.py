from fastapi import status

from tests.dispatch.helpers import auth_headers, register


async def _create(client, headers, plate="AMB-1", coordinates=(9.03, 38.74), **extra):
    body = {"license_plate": plate, "status": "available", "location": {"coordinates": list(coordinates)}}
    body.update(extra)
    return await client.post("/api/v1/ambulances", json=body, headers=headers)


async def test_admin_creates_ambulance_with_geojson_location(client):
    _, headers = await auth_headers(client, role="admin")
    response = await _create(client, headers, hospital_name="Black Lion")
    assert response.status_code == status.HTTP_201_CREATED
    ambulance = response.json()["ambulance"]
    assert ambulance["license_plate"] == "AMB-1"
    assert ambulance["hospital_name"] == "Black Lion"
    # Stored as [longitude, latitude].
    assert ambulance["location"] == {"type": "Point", "coordinates": [38.74, 9.03]}


async def test_out_of_range_pair_is_swapped(client):
    _, headers = await auth_headers(client, role="admin")
    response = await _create(client, headers, coordinates=(95, 40))
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["ambulance"]["location"]["coordinates"] == [95, 40]


async def test_invalid_coordinates_are_rejected(client):
    _, headers = await auth_headers(client, role="admin")
    response = await _create(client, headers, coordinates=(45, 200))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["message"] == "Invalid coordinates"


async def test_explicit_latitude_longitude_form(client):
    _, headers = await auth_headers(client, role="admin")
    response = await client.post(
        "/api/v1/ambulances",
        json={"license_plate": "AMB-2", "status": "on-duty", "location": {"latitude": 10, "longitude": 50}},
        headers=headers,
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["ambulance"]["location"]["coordinates"] == [50, 10]


async def test_duplicate_plate_conflicts(client):
    _, headers = await auth_headers(client, role="admin")
    await _create(client, headers)
    response = await _create(client, headers)
    assert response.status_code == status.HTTP_409_CONFLICT
    assert response.json()["message"] == "License plate already in use"


async def test_non_admin_cannot_create(client):
    _, headers = await auth_headers(client, role="dispatcher")
    response = await _create(client, headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN


async def test_list_filters_by_status(client):
    _, admin_headers = await auth_headers(client, role="admin")
    await _create(client, admin_headers, plate="AMB-1")
    await _create(client, admin_headers, plate="AMB-2", status="maintenance")
    _, headers = await auth_headers(client)

    response = await client.get("/api/v1/ambulances", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"] == "Ambulances retrieved successfully"
    assert len(response.json()["ambulances"]) == 2

    response = await client.get("/api/v1/ambulances", params={"status": "maintenance"}, headers=headers)
    plates = [a["license_plate"] for a in response.json()["ambulances"]]
    assert plates == ["AMB-2"]


async def test_update_and_delete(client):
    _, headers = await auth_headers(client, role="admin")
    ambulance_id = (await _create(client, headers)).json()["ambulance"]["id"]

    response = await client.put(
        f"/api/v1/ambulances/{ambulance_id}",
        json={"status": "on-duty", "location": {"coordinates": [8.5, 39.2]}},
        headers=headers,
    )
    assert response.status_code == status.HTTP_200_OK
    ambulance = response.json()["ambulance"]
    assert ambulance["status"] == "on-duty"
    assert ambulance["license_plate"] == "AMB-1"
    assert ambulance["location"]["coordinates"] == [39.2, 8.5]

    response = await client.delete(f"/api/v1/ambulances/{ambulance_id}", headers=headers)
    assert response.status_code == status.HTTP_200_OK

    response = await client.get(f"/api/v1/ambulances/{ambulance_id}", headers=headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["message"] == "Ambulance not found"


async def test_deleting_ambulance_unassigns_driver(client):
    _, headers = await auth_headers(client, role="admin")
    ambulance_id = (await _create(client, headers)).json()["ambulance"]["id"]
    user = await register(client)
    driver = (
        await client.post(
            "/api/v1/drivers",
            json={"user_id": user["id"], "license_number": "LIC-1", "assigned_ambulance": ambulance_id},
            headers=headers,
        )
    ).json()["driver"]
    assert driver["assigned_ambulance"]["id"] == ambulance_id

    await client.delete(f"/api/v1/ambulances/{ambulance_id}", headers=headers)

    response = await client.get(f"/api/v1/drivers/{driver['id']}", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["driver"]["assigned_ambulance"] is None


async def test_update_can_clear_hospital_but_not_required_fields(client):
    _, headers = await auth_headers(client, role="admin")
    ambulance_id = (await _create(client, headers, hospital_name="St. Paul")).json()["ambulance"]["id"]

    response = await client.put(f"/api/v1/ambulances/{ambulance_id}", json={"status": "maintenance"}, headers=headers)
    assert response.json()["ambulance"]["hospital_name"] == "St. Paul"

    response = await client.put(f"/api/v1/ambulances/{ambulance_id}", json={"hospital_name": None}, headers=headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["ambulance"]["hospital_name"] is None
    assert response.json()["ambulance"]["status"] == "maintenance"

    response = await client.put(f"/api/v1/ambulances/{ambulance_id}", json={"status": None}, headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = await client.put(f"/api/v1/ambulances/{ambulance_id}", json={"location": None}, headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
