"""Pytest configuration and fixtures"""
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

# Settings are read at import time; keep the app's own startup away from ./data
_STARTUP_DIR = tempfile.mkdtemp(prefix="recipe-api-tests-")
os.environ["STORAGE_BACKEND"] = "json"
os.environ["CREDENTIALS_BACKEND"] = "static"
os.environ["RECIPES_FILE"] = os.path.join(_STARTUP_DIR, "recipes.json")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from recipe_api.api.deps import get_credential_store, get_recipe_store, get_token_registry
from recipe_api.database import Base, create_session_factory
from recipe_api.models import RecipeRow, User  # noqa: F401  registers tables on Base
from recipe_api.main import app
from recipe_api.services.credentials import DatabaseCredentialStore, StaticCredentialStore
from recipe_api.services.token_registry import TokenRegistry
from recipe_api.storage.json_store import JSONRecipeStore
from recipe_api.storage.sql_store import SQLRecipeStore

DEMO_USERS = [
    {"username": "admin", "password": "admin123"},
    {"username": "chef", "password": "cooking456"},
]


class FakeClock:
    """Manually advanced UTC clock"""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session_factory(tmp_path: Path) -> Generator[sessionmaker, None, None]:
    """Fresh SQLite database per test"""
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    try:
        yield create_session_factory(engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def json_store(tmp_path: Path, clock: FakeClock) -> JSONRecipeStore:
    return JSONRecipeStore(tmp_path / "data" / "recipes.json", clock=clock)


@pytest.fixture
def sql_store(session_factory: sessionmaker, clock: FakeClock) -> SQLRecipeStore:
    return SQLRecipeStore(session_factory, clock=clock)


@pytest.fixture(params=["json", "database"])
def store(request, tmp_path: Path, clock: FakeClock):
    """Each recipe store contract test runs against both backends"""
    if request.param == "json":
        return JSONRecipeStore(tmp_path / "recipes.json", clock=clock)
    return SQLRecipeStore(request.getfixturevalue("session_factory"), clock=clock)


@pytest.fixture
def registry(clock: FakeClock) -> TokenRegistry:
    return TokenRegistry(ttl=timedelta(hours=24), clock=clock)


@pytest.fixture
def db_credentials(session_factory: sessionmaker) -> DatabaseCredentialStore:
    return DatabaseCredentialStore(session_factory, bcrypt_rounds=4)


@pytest.fixture
def client(json_store: JSONRecipeStore, registry: TokenRegistry) -> Generator[TestClient, None, None]:
    """Test client wired to per-test store, registry and static credentials"""
    credentials = StaticCredentialStore(DEMO_USERS)

    app.dependency_overrides[get_recipe_store] = lambda: json_store
    app.dependency_overrides[get_token_registry] = lambda: registry
    app.dependency_overrides[get_credential_store] = lambda: credentials
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client: TestClient) -> dict:
    """Bearer headers for the chef account"""
    response = client.post("/api/login", json={"username": "chef", "password": "cooking456"})
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def sample_recipe_data() -> dict:
    """Sample recipe data for tests"""
    return {
        "name": "Soup",
        "ingredients": ["water", "salt"],
        "instructions": "boil",
        "cooking_time": "10 minutes",
        "servings": 2,
        "category": "starter",
    }
