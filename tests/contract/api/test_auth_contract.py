"""
Contract tests for player authentication endpoints.
Covers request validation, the response envelope and error bodies.
"""

import pytest

EMAIL = "player@example.com"


async def _sign_up(client, email_sender, email: str = EMAIL, **extra) -> dict:
    response = await client.post("/auth/signup", json={"email": email})
    assert response.status_code == 200
    code = email_sender.last_code(email)
    response = await client.post("/auth/verify-otp", json={"email": email, "otp": code, **extra})
    assert response.status_code == 200
    return response.json()["data"]


async def test_signup_sends_code(client, email_sender):
    response = await client.post("/auth/signup", json={"email": EMAIL})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "OTP sent successfully"
    assert body["data"] is None
    assert email_sender.outbox[-1][0] == EMAIL


@pytest.mark.parametrize("payload", [{}, {"email": "not-an-email"}])
async def test_signup_validation(client, payload):
    response = await client.post("/auth/signup", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "INVALID_INPUT"


async def test_verify_otp_returns_tokens_and_user(client, email_sender):
    data = await _sign_up(client, email_sender, telegramId=123456, username="neo")

    assert data["tokenType"] == "bearer"
    assert data["expiresIn"] > 0
    assert data["accessToken"] and data["refreshToken"]
    user = data["user"]
    assert user["email"] == EMAIL
    assert user["telegramId"] == "123456"
    assert user["username"] == "neo"
    assert user["points"] == 0
    assert user["languagePreference"] == "en"


async def test_signup_existing_account_conflicts(client, email_sender):
    await _sign_up(client, email_sender)

    response = await client.post("/auth/signup", json={"email": EMAIL})

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "ALREADY_EXISTS"


async def test_signin_email_flow(client, email_sender):
    await _sign_up(client, email_sender)

    response = await client.post("/auth/signin/email", json={"email": EMAIL})
    assert response.status_code == 200

    code = email_sender.last_code(EMAIL)
    response = await client.post("/auth/verify-otp", json={"email": EMAIL, "otp": code})
    assert response.status_code == 200


async def test_signin_email_unknown_account(client):
    response = await client.post("/auth/signin/email", json={"email": "ghost@example.com"})
    assert response.status_code == 404


async def test_verify_otp_wrong_code(client, email_sender):
    await client.post("/auth/signup", json={"email": EMAIL})
    code = email_sender.last_code(EMAIL)
    wrong = "1" * len(code) if code != "1" * len(code) else "2" * len(code)

    response = await client.post("/auth/verify-otp", json={"email": EMAIL, "otp": wrong})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_OTP"


async def test_verify_otp_rejects_non_digits(client):
    response = await client.post("/auth/verify-otp", json={"email": EMAIL, "otp": "12ab56"})
    assert response.status_code == 400


async def test_refresh_token_rotation(client, email_sender):
    data = await _sign_up(client, email_sender)

    response = await client.post("/auth/refresh-token", json={"refreshToken": data["refreshToken"]})
    assert response.status_code == 200
    rotated = response.json()["data"]
    assert rotated["refreshToken"] != data["refreshToken"]

    response = await client.post("/auth/refresh-token", json={"refreshToken": data["refreshToken"]})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "TOKEN_REVOKED"


async def test_refresh_token_rejects_access_token(client, email_sender):
    data = await _sign_up(client, email_sender)

    response = await client.post("/auth/refresh-token", json={"refreshToken": data["accessToken"]})

    assert response.status_code == 401


async def test_signin_by_telegram(client, email_sender):
    await _sign_up(client, email_sender, telegramId="777")

    response = await client.get("/auth/signin/777")
    assert response.status_code == 200
    assert response.json()["data"]["user"]["email"] == EMAIL

    response = await client.get("/auth/signin/888")
    assert response.status_code == 404


async def test_profile_requires_bearer(client):
    response = await client.get("/auth/profile")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_TOKEN"

    response = await client.get("/auth/profile", headers={"Authorization": "Basic abc"})
    assert response.status_code == 401


async def test_profile_read_and_update(client, user_factory):
    _, headers = await user_factory(username="neo")

    response = await client.get("/auth/profile", headers=headers)
    assert response.status_code == 200
    assert response.json()["data"]["username"] == "neo"

    response = await client.patch(
        "/auth/profile", headers=headers,
        json={"username": "trinity", "languagePreference": "es", "walletAddress": "0xabc"}
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["username"] == "trinity"
    assert data["languagePreference"] == "es"
    assert data["walletAddress"] == "0xabc"


async def test_profile_update_rejects_protected_fields(client, user_factory):
    _, headers = await user_factory()

    response = await client.patch("/auth/profile", headers=headers, json={"points": 1000})
    assert response.status_code == 400

    response = await client.get("/auth/profile", headers=headers)
    assert response.json()["data"]["points"] == 0


async def test_profile_rejects_admin_token(client, admin_headers):
    response = await client.get("/auth/profile", headers=admin_headers)
    assert response.status_code == 401
