"""
Shared fixtures: settings pointing at a throwaway SQLite file, the app,
a TestClient and a direct database session.
"""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from skyearth.config import Settings
from skyearth.database import Database
from skyearth.main import create_app
from skyearth.services.auth_service import AuthService
from skyearth.services.token_service import TokenService

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "skyearth_test.db"


@pytest.fixture
def settings(db_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{db_path}",
        jwt_secret=TEST_SECRET,
        jwt_expire_hours=1,
        bcrypt_rounds=4,
    )


@pytest.fixture
def token_service(settings) -> TokenService:
    return TokenService.from_settings(settings)


@pytest.fixture
def auth_service(token_service, settings) -> AuthService:
    return AuthService(token_service, bcrypt_rounds=settings.bcrypt_rounds)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest_asyncio.fixture
async def db(settings):
    database = Database.from_settings(settings)
    await database.ensure_database()
    await database.ensure_schema()
    async with database.session() as session:
        yield session
    await database.dispose()
