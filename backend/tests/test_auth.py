import pytest

from learningoo.auth import create_access_token, decode_jwt
from learningoo.repositories import users as users_repo
from learningoo.services.config_service import update_config

from .utils import PASSWORD, auth_header, headers_for, make_user

pytestmark = pytest.mark.anyio("asyncio")

ADMIN_EMAIL = "admin@learningoo.test"
ADMIN_PASSWORD = "Admin-Secret-123"


async def register(client, email: str, password: str = PASSWORD, name: str = "Ada"):
    return await client.post(
        "/auth/register",
        json={"name": name, "email": email, "password": password},
    )


async def test_register_snapshots_default_credits(async_client):
    await update_config(default_credits=250)

    resp = await register(async_client, "Ada@Example.com")
    assert resp.status_code == 201, resp.text
    payload = resp.json()
    assert payload["user"]["email"] == "ada@example.com"
    assert payload["user"]["role"] == "student"
    assert payload["user"]["balance"] == 250
    assert "passwordHash" not in payload["user"]

    claims = decode_jwt(payload["token"])
    assert claims["sub"] == payload["user"]["id"]
    assert claims["token_type"] == "access"

    await update_config(default_credits=5)
    stored = await users_repo.get_user(payload["user"]["id"])
    assert stored["balance"] == 250


async def test_duplicate_email_conflicts_case_insensitively(async_client):
    first = await register(async_client, "dup@example.com")
    assert first.status_code == 201

    second = await register(async_client, "DUP@example.com")
    assert second.status_code == 409
    assert second.json()["detail"]["reason"] == "emailUsed"


async def test_registration_gate(async_client):
    await update_config(allow_registration=False)

    resp = await register(async_client, "late@example.com")
    assert resp.status_code == 403
    assert resp.json() == {
        "detail": {
            "reason": "registrationDisabled",
            "message": "Registration is currently disabled",
        }
    }


async def test_login_returns_session_for_valid_credentials(async_client):
    user = await make_user(email="login@example.com")

    resp = await async_client.post(
        "/auth/login", json={"email": "LOGIN@example.com", "password": PASSWORD}
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["user"]["id"] == user["id"]

    me = await async_client.get("/auth/me", headers=auth_header(resp.json()["token"]))
    assert me.status_code == 200
    assert me.json()["email"] == "login@example.com"


async def test_bad_credentials_are_indistinguishable(async_client):
    await make_user(email="known@example.com")
    await make_user(email="sleeping@example.com", is_active=False)

    wrong_password = await async_client.post(
        "/auth/login", json={"email": "known@example.com", "password": "nope-nope"}
    )
    unknown_email = await async_client.post(
        "/auth/login", json={"email": "ghost@example.com", "password": PASSWORD}
    )
    inactive = await async_client.post(
        "/auth/login", json={"email": "sleeping@example.com", "password": PASSWORD}
    )

    for resp in (wrong_password, unknown_email, inactive):
        assert resp.status_code == 401
        assert resp.json() == wrong_password.json()
    assert wrong_password.json()["detail"]["reason"] == "invalidCredentials"


async def test_admin_credentials_bypass_disabled_login(async_client):
    await make_user(email="regular@example.com")
    await update_config(allow_login=False)

    blocked = await async_client.post(
        "/auth/login", json={"email": "regular@example.com", "password": PASSWORD}
    )
    assert blocked.status_code == 403
    assert blocked.json()["detail"]["reason"] == "loginDisabled"

    admin = await async_client.post(
        "/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert admin.status_code == 200, admin.text
    assert admin.json()["user"]["role"] == "admin"

    # The admin can now re-open login for everyone else.
    token = admin.json()["token"]
    reopened = await async_client.put(
        "/admin/config", json={"allowLogin": True}, headers=auth_header(token)
    )
    assert reopened.status_code == 200, reopened.text
    retry = await async_client.post(
        "/auth/login", json={"email": "regular@example.com", "password": PASSWORD}
    )
    assert retry.status_code == 200


async def test_admin_credentials_reuse_the_same_account(async_client):
    first = await async_client.post(
        "/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    second = await async_client.post(
        "/admin/login", json={"key": "admin-key-123", "password": ADMIN_PASSWORD}
    )
    assert first.status_code == 200
    assert second.status_code == 200, second.text
    assert first.json()["user"]["id"] == second.json()["user"]["id"]


async def test_admin_login_rejects_wrong_key(async_client):
    resp = await async_client.post(
        "/admin/login", json={"key": "guess", "password": ADMIN_PASSWORD}
    )
    assert resp.status_code == 401
    assert resp.json()["detail"]["reason"] == "invalidCredentials"


async def test_role_is_reloaded_from_the_store(async_client):
    tutor = await make_user(role="tutor", license_slug="free")
    headers = headers_for(tutor)
    await users_repo.update_user(tutor["id"], {"role": "student", "license_id": None})

    me = await async_client.get("/auth/me", headers=headers)
    assert me.json()["role"] == "student"

    create = await async_client.post("/courses", json={"title": "Nope"}, headers=headers)
    assert create.status_code == 403


async def test_deactivated_user_token_is_rejected(async_client):
    user = await make_user()
    headers = headers_for(user)
    await users_repo.update_user(user["id"], {"is_active": False})

    resp = await async_client.get("/auth/me", headers=headers)
    assert resp.status_code == 401


async def test_expired_token_is_rejected(async_client):
    user = await make_user()
    expired = create_access_token(user["id"], expires_minutes=-1)

    resp = await async_client.get("/auth/me", headers=auth_header(expired))
    assert resp.status_code == 401


async def test_profile_update_sets_author_fields_only(async_client):
    tutor = await make_user(role="tutor", balance=40, license_slug="free")
    headers = headers_for(tutor)

    resp = await async_client.patch(
        "/auth/me",
        json={"authorName": "  Ada L.  ", "bio": "Teaches Python", "role": "admin", "balance": 999},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["authorName"] == "Ada L."
    assert body["bio"] == "Teaches Python"
    assert body["role"] == "tutor"
    assert body["balance"] == 40

    me = await async_client.get("/auth/me", headers=headers)
    assert me.json()["authorName"] == "Ada L."

    blank = await async_client.patch("/auth/me", json={"name": "   "}, headers=headers)
    assert blank.status_code == 422
    assert blank.json()["detail"]["reason"] == "blankName"

    anonymous = await async_client.patch("/auth/me", json={"bio": "x"})
    assert anonymous.status_code == 401
