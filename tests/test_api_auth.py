from yogastudio.staff.models import UserRole

from tests.factories import PASSWORD, auth_headers, make_profile


async def test_staff_login_returns_token(seed, client):
    admin = await make_profile(seed, first_name="Admin", phone="77000000000", role=UserRole.admin)

    response = await client.post(
        "/api/v1/auth/login", json={"phone": "+7 (700) 000-00-00", "password": PASSWORD}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["user_id"] == admin.id
    assert body["role"] == "admin"
    assert body["token_type"] == "bearer"
    assert body["access_token"]


async def test_staff_login_rejects_client(seed, client):
    await make_profile(seed)

    response = await client.post(
        "/api/v1/auth/login", json={"phone": "77010000001", "password": PASSWORD}
    )

    assert response.status_code == 403
    assert response.json()["error"] == "AUTHORIZATION_ERROR"


async def test_wrong_password(seed, client):
    await make_profile(seed)

    response = await client.post(
        "/api/v1/portal/auth/login", json={"phone": "77010000001", "password": "nope"}
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid phone or password"


async def test_admin_section_without_token_points_to_staff_login(client):
    response = await client.get("/api/v1/admin/clients/")

    assert response.status_code == 401
    body = response.json()
    assert body["details"]["login_url"] == "/login"
    assert body["path"] == "/api/v1/admin/clients/"


async def test_portal_without_token_points_to_portal_login(client):
    response = await client.get("/api/v1/portal/home")

    assert response.status_code == 401
    assert response.json()["details"]["login_url"] == "/portal/login"


async def test_garbage_token_rejected(client):
    response = await client.get(
        "/api/v1/portal/home", headers={"Authorization": "Bearer not-a-token"}
    )

    assert response.status_code == 401


async def test_client_cannot_open_admin_section(seed, client):
    profile = await make_profile(seed)

    response = await client.get("/api/v1/admin/clients/", headers=auth_headers(profile))

    assert response.status_code == 403


async def test_register_then_login_with_phone_digits(client):
    response = await client.post(
        "/api/v1/portal/auth/register",
        json={"first_name": "Dana", "phone": "+7 701 555 12 34"},
    )
    assert response.status_code == 201
    token = response.json()["access_token"]

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["phone"] == "77015551234"
    assert me.json()["role"] == "client"

    login = await client.post(
        "/api/v1/portal/auth/login", json={"phone": "77015551234", "password": "77015551234"}
    )
    assert login.status_code == 200


async def test_register_duplicate_phone(seed, client):
    await make_profile(seed, phone="77015551234")

    response = await client.post(
        "/api/v1/portal/auth/register",
        json={"first_name": "Dana", "phone": "7 701 555 12 34", "password": "pass1234"},
    )

    assert response.status_code == 409


async def test_register_short_phone(client):
    response = await client.post(
        "/api/v1/portal/auth/register", json={"first_name": "Dana", "phone": "12345"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_responses_carry_request_id_and_security_headers(client):
    response = await client.get("/api/v1/portal/profile")

    assert response.status_code == 401
    assert len(response.headers["X-Request-ID"]) == 8
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


async def test_unknown_route_uses_error_body(client):
    response = await client.get("/api/v1/no-such-route")

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "HTTP_ERROR"
    assert body["path"] == "/api/v1/no-such-route"
