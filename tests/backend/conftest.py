import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from tutor.config import Settings
from tutor.core import db as db_module
from tutor.core.security import hash_password
from tutor.main import app
from tutor.models.user import User
from tutor.services.registry import build_services


TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


def offline_settings(**overrides) -> Settings:
    """
    Settings with every provider credential removed, so each capability
    takes its fallback path (canned replies, demo videos, default voices).
    """
    values = dict(
        openai_api_key=None,
        eleven_api_key=None,
        did_api_key=None,
        heygen_api_key=None,
        heygen_access_token=None,
        video_poll_interval_sec=0,
        video_poll_max_attempts=3,
    )
    values.update(overrides)
    return Settings(**values)


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest_asyncio.fixture
async def client():
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB
    and a provider-less service registry.
    """
    await _init_test_db()
    app.state.services = build_services(offline_settings())
    # Use ASGITransport without lifespan parameter (not supported in all httpx versions)
    try:
        transport = ASGITransport(app=app, lifespan="off")
    except TypeError:
        # Fallback for httpx versions that don't support lifespan parameter
        transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    await app.state.services.streams.manager.close()
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def create_user():
    """
    Factory fixture to create users directly via ORM.
    """

    async def _create_user(
        name: str = "Ana",
        email: str = "ana@example.com",
        password: str = "secret123",
        ai_tutor_name: str = "Sam",
    ) -> tuple[User, str]:
        user = await User.create(
            name=name,
            email=email,
            password_hash=hash_password(password),
            ai_tutor_name=ai_tutor_name,
        )
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(email: str, password: str) -> dict[str, str]:
        resp = await client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        token = resp.json()["token"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers


@pytest_asyncio.fixture
async def ana_headers(client):
    """Register Ana (tutor "Sam") through the API and return her auth headers."""
    resp = await client.post(
        "/api/auth/register",
        json={"name": "Ana", "email": "ana@example.com", "password": "secret123", "aiTutorName": "Sam"},
    )
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


@pytest.fixture
def offline_services():
    """Install a provider-less service registry on the app (no database)."""
    app.state.services = build_services(offline_settings())
    return app.state.services
