"""Request helpers shared by the API tests."""


_phone_counter = iter(range(1000, 100000))


async def register(ac, *, role="user", email=None, name="Test User", password="secret-pass", **extra):
    """Register an account and return the created user payload."""

    number = next(_phone_counter)
    body = {
        "name": name,
        "role": role,
        "email": email or f"{role}{number}@example.com",
        "password": password,
        "phone_number_1": f"+1555{number:06d}",
    }
    body.update(extra)
    response = await ac.post("/api/v1/users/register", json=body)
    assert response.status_code == 201, response.text
    return response.json()["user"]


async def login(ac, email, password="secret-pass"):
    response = await ac.post("/api/v1/users/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


async def auth_headers(ac, *, role="user", **extra):
    """Register a user with ``role`` and return (user, headers)."""

    user = await register(ac, role=role, **extra)
    token = await login(ac, user["email"])
    return user, {"Authorization": f"Bearer {token}"}
