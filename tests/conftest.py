import os
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import text

# Ensure pytest-asyncio plugin is active for async tests
pytest_plugins = ("pytest_asyncio",)

# Run tests inside the asyncio event loop by default
pytestmark = pytest.mark.asyncio
# Ensure project root on path before importing app modules
project_root = Path(__file__).resolve().parents[1]
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# Configure the app to use a local SQLite database during tests
_test_db_path = project_root / "test.db"
os.environ["APP_DATABASE_URL"] = f"sqlite+aiosqlite:///{_test_db_path.as_posix()}"
os.environ["APP_DEBUG"] = "false"
os.environ["APP_BCRYPT_ROUNDS"] = "4"
os.environ["APP_RATING_UPDATE_RETRY_DELAY_SECONDS"] = "0.05"

# Start each test session from a clean database file
if _test_db_path.exists():
    _test_db_path.unlink()

DEFAULT_PASSWORD = "Sup3r$ecret"


async def _clear_database(session) -> None:
    """Remove all data from the database between tests."""
    from pitpulse.models import Base

    await session.execute(text("PRAGMA foreign_keys=OFF"))
    for table in reversed(Base.metadata.sorted_tables):
        await session.execute(table.delete())
    await session.commit()
    await session.execute(text("PRAGMA foreign_keys=ON"))


async def _seed_badges() -> None:
    from pitpulse.database import AsyncSessionLocal
    from pitpulse.services.badge_service import BadgeService

    async with AsyncSessionLocal() as session:
        await BadgeService(session).ensure_catalog()


@pytest_asyncio.fixture(scope="session", autouse=True)
async def setup_database():
    """Create all tables for the duration of the test session."""
    from pitpulse.database import create_tables, drop_tables

    await create_tables()
    yield
    await drop_tables()
    if _test_db_path.exists():
        _test_db_path.unlink()


@pytest_asyncio.fixture(autouse=True)
async def clean_database_after_test(setup_database):
    """Seed the badge catalog, then wipe everything once the test is done."""
    from pitpulse.database import AsyncSessionLocal
    from pitpulse.services.background import rating_updates

    await _seed_badges()
    yield
    # Background jobs may still hold rows from this test
    await rating_updates.drain()
    async with AsyncSessionLocal() as session:
        await _clear_database(session)


@pytest_asyncio.fixture
async def test_session(setup_database):
    """Provide an async database session to tests that need direct access."""
    from pitpulse.database import AsyncSessionLocal

    async with AsyncSessionLocal() as session:
        yield session


@pytest_asyncio.fixture
async def client():
    from pitpulse.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def register_user(client):
    """Factory: register a user through the API, returning (headers, user)."""

    async def _register(username: str = "moshpit_mike", email: str = None):
        email = email or f"{username}@pitpulse.app"
        response = await client.post(
            "/api/users/register",
            json={"email": email, "password": DEFAULT_PASSWORD, "username": username},
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return {"Authorization": f"Bearer {data['token']}"}, data["user"]

    return _register


@pytest_asyncio.fixture
async def auth_headers(register_user):
    headers, _ = await register_user()
    return headers


@pytest_asyncio.fixture
async def create_venue(client, auth_headers):
    async def _create(**overrides):
        payload = {
            "name": "The Roxy",
            "city": "West Hollywood",
            "state": "CA",
            "country": "USA",
            "latitude": 34.0907,
            "longitude": -118.3897,
            "capacity": 500,
            "venueType": "club",
        }
        payload.update(overrides)
        response = await client.post("/api/venues", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest_asyncio.fixture
async def create_band(client, auth_headers):
    async def _create(**overrides):
        payload = {
            "name": "Turnstile",
            "genre": "Hardcore",
            "formedYear": 2010,
            "hometown": "Baltimore, MD",
        }
        payload.update(overrides)
        response = await client.post("/api/bands", json=payload, headers=auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create
