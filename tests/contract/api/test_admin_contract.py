"""
Contract tests for admin authentication and dashboard endpoints.
"""

import pyotp
import pytest

ADMIN = {"email": "root@example.com", "username": "root", "password": "correct-horse"}


@pytest.fixture
async def admin_tokens(client) -> dict:
    response = await client.post("/admin/auth/create", json=ADMIN)
    assert response.status_code == 201

    response = await client.post(
        "/admin/auth/login", json={"email": ADMIN["email"], "password": ADMIN["password"]}
    )
    assert response.status_code == 200
    return response.json()["data"]["tokens"]


def _auth(tokens: dict) -> dict:
    return {"Authorization": f"Bearer {tokens['accessToken']}"}


async def test_create_admin_contract(client):
    response = await client.post("/admin/auth/create", json=ADMIN)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["email"] == ADMIN["email"]
    assert data["username"] == ADMIN["username"]
    assert data["twoFAEnabled"] is False
    assert "password" not in data

    response = await client.post("/admin/auth/create", json=ADMIN)
    assert response.status_code == 409


async def test_create_admin_validation(client):
    response = await client.post("/admin/auth/create", json={**ADMIN, "password": "short"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_INPUT"


async def test_login_returns_tokens_and_profile(client):
    await client.post("/admin/auth/create", json=ADMIN)

    response = await client.post(
        "/admin/auth/login", json={"email": ADMIN["email"], "password": ADMIN["password"]}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Login successful"
    assert body["data"]["requiresTfa"] is False
    assert body["data"]["tokens"]["accessToken"]
    assert body["data"]["admin"]["lastLogin"] is not None


async def test_login_wrong_password(client):
    await client.post("/admin/auth/create", json=ADMIN)

    response = await client.post("/admin/auth/login", json={"email": ADMIN["email"], "password": "nope"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"


async def test_two_factor_flow(client, admin_tokens):
    headers = _auth(admin_tokens)

    response = await client.post("/admin/auth/enable-tfa", headers=headers)
    assert response.status_code == 200
    enrollment = response.json()["data"]
    assert enrollment["otpauthUrl"].startswith("otpauth://totp/")
    assert enrollment["qrCode"].startswith("data:image/png;base64,")
    totp = pyotp.TOTP(enrollment["secret"])

    # Enrolment alone does not enforce the second factor
    response = await client.post(
        "/admin/auth/login", json={"email": ADMIN["email"], "password": ADMIN["password"]}
    )
    assert response.json()["data"]["requiresTfa"] is False

    response = await client.post("/admin/auth/verify-tfa", headers=headers, json={"code": totp.now()})
    assert response.status_code == 200
    assert response.json()["data"]["twoFAEnabled"] is True

    response = await client.post(
        "/admin/auth/login", json={"email": ADMIN["email"], "password": ADMIN["password"]}
    )
    data = response.json()["data"]
    assert data["requiresTfa"] is True
    assert data["tempUserId"]
    assert data["tokens"] is None

    response = await client.post(
        "/admin/auth/login-with-tfa",
        json={"email": ADMIN["email"], "password": ADMIN["password"], "code": totp.now()}
    )
    assert response.status_code == 200
    assert response.json()["data"]["tokens"]["accessToken"]

    response = await client.post("/admin/auth/disable-tfa", headers=headers, json={"code": totp.now()})
    assert response.status_code == 200
    assert response.json()["data"]["twoFAEnabled"] is False


async def test_verify_tfa_rejects_malformed_code(client, admin_tokens):
    response = await client.post("/admin/auth/verify-tfa", headers=_auth(admin_tokens), json={"code": "12ab56"})
    assert response.status_code == 400


async def test_login_with_tfa_when_not_enabled(client, admin_tokens):
    response = await client.post(
        "/admin/auth/login-with-tfa",
        json={"email": ADMIN["email"], "password": ADMIN["password"], "code": "123456"}
    )
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "TFA_NOT_ENABLED"


async def test_refresh_and_logout(client, admin_tokens):
    response = await client.post("/admin/auth/refresh", json={"refreshToken": admin_tokens["refreshToken"]})
    assert response.status_code == 200
    rotated = response.json()["data"]

    # The previous refresh token no longer matches the stored digest
    response = await client.post("/admin/auth/refresh", json={"refreshToken": admin_tokens["refreshToken"]})
    assert response.status_code == 401

    response = await client.post("/admin/auth/logout", headers=_auth(rotated))
    assert response.status_code == 200

    response = await client.post("/admin/auth/refresh", json={"refreshToken": rotated["refreshToken"]})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "TOKEN_REVOKED"


async def test_admin_profile(client, admin_tokens):
    response = await client.get("/admin/auth/profile", headers=_auth(admin_tokens))

    assert response.status_code == 200
    assert response.json()["data"]["email"] == ADMIN["email"]


async def test_admin_routes_reject_player_tokens(client, user_factory):
    _, headers = await user_factory()

    assert (await client.get("/admin/auth/profile", headers=headers)).status_code == 401
    assert (await client.get("/admin/dashboard/stats", headers=headers)).status_code == 401


async def test_dashboard_endpoints(client, admin_headers, user_factory, presence):
    first, _ = await user_factory("first@example.com", points=30, username="first")
    await user_factory("second@example.com", points=10)
    presence.touch(str(first.id))

    response = await client.get("/admin/dashboard/stats", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"totalUsers": 2, "newUsers": 2, "activeUsers": 1}

    response = await client.get("/admin/dashboard/users", headers=admin_headers)
    assert response.status_code == 200
    users = response.json()["data"]
    assert [u["email"] for u in users] == ["first@example.com", "second@example.com"]
    assert [u["ranking"] for u in users] == [1, 2]
    assert users[0]["isActive"] is True
    assert users[1]["isActive"] is False
