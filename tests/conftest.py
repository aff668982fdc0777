"""
Shared test fixtures.

Sets up an isolated SQLite test database so tests never touch
the real database. Tables are created before each test and
dropped after it, so no test data persists.
"""

import pytest
from fastapi.testclient import TestClient

from simple_bank.api.deps import get_store, get_token_authority
from simple_bank.main import app
from simple_bank.models import Base
from simple_bank.models.base import create_db_engine
from simple_bank.security.token import TokenAuthority
from simple_bank.store.memory import InMemoryLedgerStore
from simple_bank.store.sql import SqlLedgerStore


# Use SQLite for tests — no external database needed.
TEST_DATABASE_URL = "sqlite:///./test.db"

TEST_TOKEN_KEY = "test-only-symmetric-key-0123456789"

engine = create_db_engine(TEST_DATABASE_URL)


@pytest.fixture(autouse=True)
def setup_database():
    """
    Create all tables before each test, drop them after.

    autouse=True means every test gets this automatically.
    """
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store():
    """SQL ledger store on the test database."""
    return SqlLedgerStore(engine)


@pytest.fixture
def memory_store():
    return InMemoryLedgerStore()


@pytest.fixture(params=["sql", "memory"])
def ledger_store(request, store, memory_store):
    """Run a test once against each store implementation."""
    return store if request.param == "sql" else memory_store


@pytest.fixture
def token_authority():
    return TokenAuthority(TEST_TOKEN_KEY)


@pytest.fixture
def client(store, token_authority):
    """
    Provide a test client wired to the test store.

    The store and token authority dependencies are overridden so
    the app never builds its own from settings.
    """
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_token_authority] = lambda: token_authority
    yield TestClient(app)
    app.dependency_overrides.clear()
