"""
tests.test_smoke

Minimal smoke tests to validate the service can boot and serve core endpoints.

Responsibilities:
- Ensure the FastAPI app starts and the DB readiness check works in test mode.
- Ensure the catalog and projection table are loaded before serving.
"""

from __future__ import annotations

import httpx
import pytest

from studio_authz.authz.features import CATALOG
from studio_authz.authz.schemas import PROJECTIONS


@pytest.mark.asyncio
async def test_health_endpoints(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"

    r = await client.get("/readyz")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ready"
    assert body["features"] == len(CATALOG)
    assert body["projections"] == len(PROJECTIONS)


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: httpx.AsyncClient) -> None:
    r = await client.get("/healthz", headers={"x-request-id": "req-123"})
    assert r.headers["x-request-id"] == "req-123"

    r = await client.get("/healthz")
    assert r.headers["x-request-id"]


# --- Module Notes -----------------------------------------------------------
# Behavioural coverage lives in the test_api_* modules; this file only proves
# the app boots against a fresh database.
