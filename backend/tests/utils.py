import uuid
from typing import Any

from learningoo import auth
from learningoo.repositories import courses as courses_repo
from learningoo.repositories import licenses as licenses_repo
from learningoo.repositories import users as users_repo

PASSWORD = "Secret123!"
_PASSWORD_HASH: str | None = None


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _password_hash() -> str:
    # bcrypt is slow; hash the shared test password once.
    global _PASSWORD_HASH
    if _PASSWORD_HASH is None:
        _PASSWORD_HASH = auth.hash_password(PASSWORD)
    return _PASSWORD_HASH


async def make_user(
    *,
    role: str = "student",
    balance: int = 100,
    license_slug: str | None = None,
    email: str | None = None,
    is_active: bool = True,
) -> dict[str, Any]:
    user = await users_repo.create_user(
        name=f"{role.title()} {uuid.uuid4().hex[:6]}",
        email=email or f"{role}_{uuid.uuid4().hex[:8]}@example.com",
        password_hash=_password_hash(),
        role=role,
        balance=balance,
    )
    values: dict[str, Any] = {}
    if license_slug:
        license_row = await licenses_repo.get_license_by_slug(license_slug)
        assert license_row is not None
        values["license_id"] = license_row["id"]
    if not is_active:
        values["is_active"] = False
    if values:
        user = await users_repo.update_user(user["id"], values)
    return user


def token_for(user: dict[str, Any]) -> str:
    return auth.token_for_user(user)


def headers_for(user: dict[str, Any]) -> dict[str, str]:
    return auth_header(token_for(user))


async def make_course(
    tutor_id: str,
    *,
    price: int = 30,
    published: bool = True,
    title: str = "Intro to Python",
) -> dict[str, Any]:
    return await courses_repo.create_course(
        {
            "title": title,
            "slug": f"course-{uuid.uuid4().hex[:8]}",
            "price": price,
            "tutor_id": tutor_id,
            "is_published": published,
        }
    )


async def make_course_tree(tutor_id: str, *, price: int = 30):
    course = await make_course(tutor_id, price=price)
    chapter = await courses_repo.create_chapter(
        {"title": "Getting started", "course_id": course["id"], "position": 0}
    )
    lesson = await courses_repo.create_lesson(
        {"title": "Installing", "chapter_id": chapter["id"], "position": 0}
    )
    return course, chapter, lesson
