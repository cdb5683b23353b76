import pytest

from learningoo.repositories.store import StoreError


@pytest.mark.anyio("asyncio")
async def test_healthz(async_client):
    resp = await async_client.get("/healthz")
    assert resp.status_code == 200
    payload = resp.json()
    assert payload.get("ok") is True
    assert payload.get("store") == "memory"


@pytest.mark.anyio("asyncio")
async def test_readyz(async_client):
    resp = await async_client.get("/readyz")
    assert resp.status_code == 200
    payload = resp.json()
    assert payload.get("store") == "ready"


@pytest.mark.anyio("asyncio")
async def test_readyz_handles_store_failure(async_client, store, monkeypatch):
    async def _broken_ping():
        raise StoreError("store down")

    monkeypatch.setattr(store, "ping", _broken_ping)
    resp = await async_client.get("/readyz")
    assert resp.status_code == 503
    assert resp.json()["detail"] == "store unavailable"


@pytest.mark.anyio("asyncio")
async def test_metrics_exposes_ledger_counters(async_client):
    resp = await async_client.get("/metrics")
    assert resp.status_code == 200
    assert "learningoo_course_purchases_total" in resp.text
    assert "learningoo_access_checks_total" in resp.text


@pytest.mark.anyio("asyncio")
async def test_request_id_is_echoed_or_generated(async_client):
    echoed = await async_client.get("/healthz", headers={"X-Request-ID": "req-12345678"})
    assert echoed.headers["X-Request-ID"] == "req-12345678"

    replaced = await async_client.get("/healthz", headers={"X-Request-ID": "bad id!"})
    assert replaced.headers["X-Request-ID"] != "bad id!"
    assert len(replaced.headers["X-Request-ID"]) == 32
