"""Smoke tests: verifies the app starts and core endpoints respond."""

import pytest
from httpx import AsyncClient, ASGITransport

from sampha.main import app


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.mark.asyncio
async def test_api_status(client):
    r = await client.get("/api/")
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/json"
    assert r.json() == {"message": "sampha API is running"}


@pytest.mark.asyncio
async def test_unknown_api_endpoint(client):
    r = await client.get("/api/unknown")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_index_page(client):
    r = await client.get("/")
    assert r.status_code == 200
    assert "text/html" in r.headers["content-type"]
    assert '<div id="root">' in r.text
