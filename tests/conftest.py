"""Shared test fixtures for CondoPark-Engine."""

import os
import pytest
from httpx import ASGITransport, AsyncClient


SECRET_KEY = "test-secret-key-for-unit-tests"
API_KEY = "test-operator-api-key"
PASSWORD = "correct horse battery"


@pytest.fixture
def password():
    return PASSWORD


@pytest.fixture
def app():
    """Create a test app with in-memory DB."""
    os.environ["CONDOPARK_DB_URL"] = "sqlite+aiosqlite://"
    os.environ["CONDOPARK_SECRET_KEY"] = SECRET_KEY
    os.environ["CONDOPARK_API_KEY"] = API_KEY

    # Clear caches and singletons so new env vars take effect
    from condopark_engine.common.config import get_settings
    get_settings.cache_clear()

    from condopark_engine.deps import reset_singletons
    reset_singletons()

    from condopark_engine.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from condopark_engine.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()


@pytest.fixture
def operator_headers():
    return {"X-CondoPark-Api-Key": API_KEY}


@pytest.fixture
def create_community(client, operator_headers):
    async def _create(name="Lakeview Residences", code=None):
        body = {"name": name}
        if code is not None:
            body["code"] = code
        resp = await client.post("/tenants", json=body, headers=operator_headers)
        assert resp.status_code == 201, resp.text
        return resp.json()["code"]
    return _create


@pytest.fixture
def signup(client):
    """Register a resident and return ``(principal_id, auth headers)``."""
    async def _signup(code, email, unit_id, password=PASSWORD, name=""):
        resp = await client.post("/auth/signup", json={
            "community_code": code,
            "email": email,
            "password": password,
            "unit_id": unit_id,
            "name": name,
        })
        assert resp.status_code == 201, resp.text
        data = resp.json()
        return data["principal_id"], {"Authorization": f"Bearer {data['access_token']}"}
    return _signup
