import pytest

from learningoo.repositories import courses as courses_repo

from .utils import headers_for, make_course_tree, make_user

pytestmark = pytest.mark.anyio("asyncio")


async def create_course(client, headers, **overrides):
    payload = {"title": "Async Python", "price": 15, "isPublished": True, **overrides}
    return await client.post("/courses", json=payload, headers=headers)


async def test_tutor_builds_a_course_tree(async_client):
    tutor = await make_user(role="tutor", license_slug="pro")
    headers = headers_for(tutor)

    course_resp = await create_course(async_client, headers)
    assert course_resp.status_code == 201, course_resp.text
    course = course_resp.json()
    assert course["tutorId"] == tutor["id"]
    assert course["price"] == 15
    assert course["slug"].startswith("async-python-")

    second = await async_client.post(
        "/chapters",
        json={"courseId": course["id"], "title": "Second", "order": 1},
        headers=headers,
    )
    first = await async_client.post(
        "/chapters",
        json={"courseId": course["id"], "title": "First", "order": 0},
        headers=headers,
    )
    assert first.status_code == 201, first.text
    assert second.status_code == 201, second.text

    chapters = await async_client.get(f"/courses/{course['id']}/chapters")
    assert [item["title"] for item in chapters.json()] == ["First", "Second"]
    assert [item["order"] for item in chapters.json()] == [0, 1]

    lesson = await async_client.post(
        "/lessons",
        json={
            "chapterId": first.json()["id"],
            "title": "Event loops",
            "contentBlocks": [{"type": "text", "value": "hello"}],
        },
        headers=headers,
    )
    assert lesson.status_code == 201, lesson.text
    assert lesson.json()["order"] == 0

    outline = await async_client.get(f"/chapters/{first.json()['id']}")
    assert outline.status_code == 200
    assert [item["title"] for item in outline.json()["lessons"]] == ["Event loops"]


async def test_students_cannot_author_courses(async_client):
    student = await make_user()
    resp = await create_course(async_client, headers_for(student))
    assert resp.status_code == 403


async def test_free_tier_limits_apply(async_client):
    tutor = await make_user(role="tutor", license_slug="free")
    headers = headers_for(tutor)

    course = (await create_course(async_client, headers)).json()
    over = await create_course(async_client, headers, title="Another")
    assert over.status_code == 403
    assert over.json()["detail"]["reason"] == "courseLimitReached"

    chapter_ids = []
    for index in range(3):
        resp = await async_client.post(
            "/chapters",
            json={"courseId": course["id"], "title": f"Chapter {index}"},
            headers=headers,
        )
        assert resp.status_code == 201, resp.text
        chapter_ids.append(resp.json()["id"])
    fourth = await async_client.post(
        "/chapters", json={"courseId": course["id"], "title": "Chapter 4"}, headers=headers
    )
    assert fourth.status_code == 403
    assert fourth.json()["detail"]["reason"] == "chapterLimitReached"

    for index in range(2):
        resp = await async_client.post(
            "/lessons",
            json={"chapterId": chapter_ids[0], "title": f"Lesson {index}"},
            headers=headers,
        )
        assert resp.status_code == 201, resp.text
    third = await async_client.post(
        "/lessons", json={"chapterId": chapter_ids[0], "title": "Lesson 3"}, headers=headers
    )
    assert third.status_code == 403
    assert third.json()["detail"]["reason"] == "lessonLimitReached"


async def test_tutor_without_license_counts_as_free_tier(async_client):
    tutor = await make_user(role="tutor")
    headers = headers_for(tutor)

    assert (await create_course(async_client, headers)).status_code == 201
    assert (await create_course(async_client, headers, title="Two")).status_code == 403


async def test_admins_are_exempt_from_limits(async_client):
    admin = await make_user(role="admin")
    headers = headers_for(admin)

    for title in ("One", "Two", "Three"):
        resp = await create_course(async_client, headers, title=title)
        assert resp.status_code == 201, resp.text


async def test_only_owner_or_admin_may_edit(async_client):
    owner = await make_user(role="tutor", license_slug="pro")
    other = await make_user(role="tutor", license_slug="pro")
    admin = await make_user(role="admin")
    course, chapter, lesson = await make_course_tree(owner["id"])

    denied = await async_client.patch(
        f"/courses/{course['id']}", json={"title": "Hijacked"}, headers=headers_for(other)
    )
    assert denied.status_code == 403
    assert denied.json()["detail"]["reason"] == "accessDenied"

    by_admin = await async_client.patch(
        f"/courses/{course['id']}", json={"price": 99}, headers=headers_for(admin)
    )
    assert by_admin.status_code == 200, by_admin.text
    assert by_admin.json()["price"] == 99
    assert by_admin.json()["tutorId"] == owner["id"]

    reorder = await async_client.patch(
        f"/lessons/{lesson['id']}", json={"order": 4}, headers=headers_for(owner)
    )
    assert reorder.status_code == 200, reorder.text
    assert reorder.json()["order"] == 4

    delete_chapter = await async_client.delete(
        f"/chapters/{chapter['id']}", headers=headers_for(other)
    )
    assert delete_chapter.status_code == 403


async def test_negative_price_is_rejected(async_client):
    tutor = await make_user(role="tutor", license_slug="pro")
    resp = await create_course(async_client, headers_for(tutor), price=-1)
    assert resp.status_code == 422


async def test_lesson_content_requires_access(async_client):
    tutor = await make_user(role="tutor")
    student = await make_user(balance=100)
    course, _, lesson = await make_course_tree(tutor["id"], price=10)

    anonymous = await async_client.get(f"/lessons/{lesson['id']}")
    assert anonymous.status_code == 401

    stranger = await async_client.get(f"/lessons/{lesson['id']}", headers=headers_for(student))
    assert stranger.status_code == 403

    enroll = await async_client.post(
        f"/courses/{course['id']}/enroll", headers=headers_for(student)
    )
    assert enroll.status_code == 200, enroll.text

    allowed = await async_client.get(f"/lessons/{lesson['id']}", headers=headers_for(student))
    assert allowed.status_code == 200
    assert allowed.json()["title"] == "Installing"


async def test_drafts_and_deleted_courses_are_hidden(async_client):
    tutor = await make_user(role="tutor", license_slug="pro")
    headers = headers_for(tutor)
    draft = (await create_course(async_client, headers, isPublished=False)).json()
    live = (await create_course(async_client, headers, title="Live")).json()

    listing = await async_client.get("/courses")
    assert [item["id"] for item in listing.json()] == [live["id"]]

    assert (await async_client.get(f"/courses/{draft['id']}")).status_code == 404
    owner_view = await async_client.get(f"/courses/{draft['id']}", headers=headers)
    assert owner_view.status_code == 200

    deleted = await async_client.delete(f"/courses/{live['id']}", headers=headers)
    assert deleted.status_code == 204
    assert (await async_client.get(f"/courses/{live['id']}")).status_code == 404
    stored = await courses_repo.get_course(live["id"])
    assert stored["is_deleted"] is True


async def test_categories_are_admin_managed(async_client):
    admin = await make_user(role="admin")
    tutor = await make_user(role="tutor")

    denied = await async_client.post(
        "/categories", json={"name": "Data Science"}, headers=headers_for(tutor)
    )
    assert denied.status_code == 403

    created = await async_client.post(
        "/categories", json={"name": "Data Science"}, headers=headers_for(admin)
    )
    assert created.status_code == 201, created.text
    assert created.json()["slug"] == "data-science"

    duplicate = await async_client.post(
        "/categories", json={"name": "Data Science"}, headers=headers_for(admin)
    )
    assert duplicate.status_code == 409

    listing = await async_client.get("/categories")
    assert [item["name"] for item in listing.json()] == ["Data Science"]
