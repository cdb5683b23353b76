"""Guards that keep the test-suite away from shared Postgres databases."""

from __future__ import annotations

import os
import shlex
from urllib.parse import urlparse, urlunparse

TEST_DATABASE_ENV = "TEST_DATABASE_URL"

_LOCAL_HOSTS = {
    "localhost",
    "127.0.0.1",
    "::1",
    "host.docker.internal",
    "postgres",
}

_FORBIDDEN_MARKERS = ("prod", "production", "staging", "live")


def redact_db_url(raw: str) -> str:
    if not raw or "://" not in raw:
        return raw
    parsed = urlparse(raw)
    if not parsed.password:
        return raw
    return urlunparse(parsed._replace(netloc=parsed.netloc.replace(parsed.password, "****")))


def _host_and_db(raw: str) -> tuple[str, str]:
    if "://" in raw:
        parsed = urlparse(raw)
        return (parsed.hostname or "").lower(), (parsed.path or "").lstrip("/").lower()
    # key=value DSN, e.g. "host=localhost dbname=learningoo_test"
    try:
        parts = shlex.split(raw)
    except ValueError:
        parts = raw.split()
    params = dict(part.split("=", 1) for part in parts if "=" in part)
    return params.get("host", "").lower(), params.get("dbname", "").lower()


def assert_safe_test_db_url(raw: str, *, source: str = TEST_DATABASE_ENV) -> None:
    """Raise ``RuntimeError`` unless ``raw`` points at a local, non-production database."""
    raw = (raw or "").strip()
    if not raw:
        raise RuntimeError(f"{source} must be set to a local Postgres URL.")

    host, db_name = _host_and_db(raw)
    if not host:
        raise RuntimeError(f"{source} must include a host; got: {redact_db_url(raw)}")
    if host.startswith("/"):
        # Unix socket.
        return
    if host not in _LOCAL_HOSTS:
        raise RuntimeError(
            f"Tests may only use a local database; {source} host '{host}' is not permitted."
        )
    for marker in _FORBIDDEN_MARKERS:
        if marker in db_name:
            raise RuntimeError(
                f"Tests may not run against a '{marker}' database ({redact_db_url(raw)})."
            )


def resolve_test_database_url() -> str | None:
    """The validated ``TEST_DATABASE_URL``, or ``None`` when it is unset."""
    raw = os.environ.get(TEST_DATABASE_ENV)
    if not raw:
        return None
    assert_safe_test_db_url(raw)
    return raw.strip()


__all__ = ["TEST_DATABASE_ENV", "assert_safe_test_db_url", "redact_db_url", "resolve_test_database_url"]
