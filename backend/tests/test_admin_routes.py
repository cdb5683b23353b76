import pytest

from learningoo.repositories import licenses as licenses_repo
from learningoo.services import ledger_service

from .utils import headers_for, make_course, make_user

pytestmark = pytest.mark.anyio("asyncio")


async def test_admin_routes_require_admin(async_client):
    tutor = await make_user(role="tutor")
    for path in ("/admin/summary", "/admin/overview", "/admin/users", "/admin/config"):
        anonymous = await async_client.get(path)
        assert anonymous.status_code == 401, path
        denied = await async_client.get(path, headers=headers_for(tutor))
        assert denied.status_code == 403, path


async def test_summary_and_overview(async_client):
    admin = await make_user(role="admin")
    tutor = await make_user(role="tutor", balance=0, license_slug="startup")
    student = await make_user(balance=100)
    course = await make_course(tutor["id"], price=30)
    await ledger_service.purchase_course(student["id"], course["id"])
    await ledger_service.assign_license(student["id"], "advanced")

    summary = await async_client.get("/admin/summary", headers=headers_for(admin))
    assert summary.status_code == 200, summary.text
    assert summary.json() == {
        "categories": 0,
        "licenses": 4,
        "courses": 1,
        "users": 3,
        "transactions": 3,
    }

    overview = await async_client.get("/admin/overview", headers=headers_for(admin))
    assert overview.status_code == 200, overview.text
    data = overview.json()
    assert data["totalUsers"] == 3
    assert data["tutors"] == 2
    assert data["students"] == 0
    assert data["licenses"]["startup"] == 1
    assert data["licenses"]["advanced"] == 1
    assert data["revenueCourses"] == 30
    assert data["revenueLicenses"] == 16
    assert data["revenueTotal"] == 46
    assert data["topEarner"]["amount"] == 30
    assert data["topEarner"]["user"]["id"] == tutor["id"]


async def test_user_listing_hides_credentials(async_client):
    admin = await make_user(role="admin")
    await make_user(role="tutor", license_slug="pro")

    resp = await async_client.get("/admin/users", headers=headers_for(admin))
    assert resp.status_code == 200
    for item in resp.json():
        assert "passwordHash" not in item
        assert "password_hash" not in item
    assert sorted(filter(None, (item["licenseSlug"] for item in resp.json()))) == ["pro"]


async def test_admin_user_update_flows_through_ledger(async_client):
    admin = await make_user(role="admin")
    student = await make_user(balance=10)

    resp = await async_client.put(
        f"/admin/users/{student['id']}",
        json={"balance": 60, "licenseSlug": "advanced", "isActive": False},
        headers=headers_for(admin),
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["balance"] == 60
    assert body["role"] == "tutor"
    assert body["isActive"] is False

    advanced = await licenses_repo.get_license_by_slug("advanced")
    assert body["licenseId"] == advanced["id"]

    txs = await async_client.get("/admin/transactions", headers=headers_for(admin))
    assert [(tx["type"], tx["category"], tx["amount"]) for tx in txs.json()] == [
        ("credit", "topup", 50)
    ]

    downgraded = await async_client.put(
        f"/admin/users/{student['id']}",
        json={"licenseSlug": "student"},
        headers=headers_for(admin),
    )
    assert downgraded.json()["role"] == "student"
    assert downgraded.json()["licenseId"] is None

    missing = await async_client.put(
        "/admin/users/nope", json={"isActive": True}, headers=headers_for(admin)
    )
    assert missing.status_code == 404


async def test_config_update_takes_effect_immediately(async_client):
    admin = await make_user(role="admin")

    before = await async_client.get("/admin/config", headers=headers_for(admin))
    assert before.json() == {"allowRegistration": True, "allowLogin": True, "defaultCredits": 100}

    updated = await async_client.put(
        "/admin/config",
        json={"allowRegistration": False, "defaultCredits": 3},
        headers=headers_for(admin),
    )
    assert updated.status_code == 200
    assert updated.json()["allowRegistration"] is False

    register = await async_client.post(
        "/auth/register",
        json={"name": "Late", "email": "late@example.com", "password": "Secret123!"},
    )
    assert register.status_code == 403


async def test_license_update_by_admin(async_client):
    admin = await make_user(role="admin")
    free = await licenses_repo.get_license_by_slug("free")

    resp = await async_client.patch(
        f"/licenses/{free['id']}",
        json={"courseLimit": 2, "lessonLimit": None},
        headers=headers_for(admin),
    )
    assert resp.status_code == 200, resp.text
    assert resp.json()["courseLimit"] == 2
    assert resp.json()["lessonLimit"] is None
    assert resp.json()["chapterLimit"] == 3

    tutor = await make_user(role="tutor")
    denied = await async_client.patch(
        f"/licenses/{free['id']}", json={"price": 1}, headers=headers_for(tutor)
    )
    assert denied.status_code == 403
