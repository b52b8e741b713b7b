"""pytest shared fixtures: record stores, auth services, API client."""

from __future__ import annotations

import time
from collections.abc import Callable, Generator
from decimal import Decimal

import mongomock
import pytest
from fastapi.testclient import TestClient

from storefront.core.config import Settings
from storefront.core.security import PasswordHasher
from storefront.core.tokens import TokenService
from storefront.database import build_engine
from storefront.main import create_app
from storefront.repositories.document_store import DocumentRecordStore
from storefront.repositories.record_store import RecordStore
from storefront.repositories.sql_store import SqlRecordStore
from storefront.schemas.order import OrderItemCreate

TEST_SECRET = "test-signing-secret"


class FakeClock:
    """Settable wall clock (seconds since epoch)."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def line(product_id: str, quantity: int, unit_price: str) -> OrderItemCreate:
    return OrderItemCreate(product_id=product_id, quantity=quantity, unit_price=Decimal(unit_price))


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll `predicate` until it is true or `timeout` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


# --- Record stores ---
@pytest.fixture
def sql_store(tmp_path) -> Generator[SqlRecordStore, None, None]:
    """File-backed SQLite store so concurrent sessions get separate connections."""
    store = SqlRecordStore(build_engine(f"sqlite:///{tmp_path / 'storefront.db'}"))
    store.init_schema()
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def document_store() -> DocumentRecordStore:
    """In-memory MongoDB (mongomock)."""
    store = DocumentRecordStore(mongomock.MongoClient()["storefront_test"])
    store.init_schema()
    return store


@pytest.fixture(params=["sql", "document"])
def record_store(request: pytest.FixtureRequest) -> RecordStore:
    """Run the test against both record store implementations."""
    return request.getfixturevalue(f"{request.param}_store")


# --- Auth ---
@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_service(clock: FakeClock) -> TokenService:
    return TokenService(TEST_SECRET, clock=clock)


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    # Minimum bcrypt cost keeps the suite fast.
    return PasswordHasher(rounds=4)


# --- API ---
@pytest.fixture
def settings() -> Settings:
    return Settings(JWT_SECRET=TEST_SECRET, BCRYPT_ROUNDS=4, _env_file=None)


@pytest.fixture
def client(settings: Settings, sql_store: SqlRecordStore) -> Generator[TestClient, None, None]:
    app = create_app(settings, store=sql_store)
    with TestClient(app) as test_client:
        yield test_client
