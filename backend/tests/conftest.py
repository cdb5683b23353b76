import os
import sys
from pathlib import Path

# Settings are read at import time; pin the test environment first.
os.environ["STORE_BACKEND"] = "memory"
os.environ["ADMIN_EMAIL"] = "admin@learningoo.test"
os.environ["ADMIN_PASSWORD"] = "Admin-Secret-123"
os.environ["ADMIN_KEY"] = "admin-key-123"
os.environ["JWT_SECRET"] = "test-secret"
os.environ.pop("SENTRY_DSN", None)

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from learningoo import db  # noqa: E402
from learningoo.main import app  # noqa: E402
from learningoo.repositories import licenses as licenses_repo  # noqa: E402
from learningoo.repositories.memory_store import MemoryStore  # noqa: E402
from learningoo.services.config_service import config_cache  # noqa: E402


@pytest.fixture(scope="module")
def anyio_backend():
    # Limit tests to asyncio backend so local runs do not require the Trio extra.
    return "asyncio"


@pytest.fixture(autouse=True)
async def store(anyio_backend):
    """Fresh in-memory store with default licenses for every test."""
    memory = MemoryStore()
    await memory.open()
    db.use_store(memory)
    config_cache.invalidate()
    await licenses_repo.seed_default_licenses()
    try:
        yield memory
    finally:
        config_cache.invalidate()
        db.use_store(None)
        await memory.close()


@pytest.fixture
async def async_client(anyio_backend) -> AsyncClient:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
