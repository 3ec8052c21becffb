from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from app.config import get_settings
from app.db.session import init_store
from app.db.store import UserStore
from app.main import create_app
from app.observability.metrics import reset_metrics
from app.observability.telemetry import Telemetry, init_telemetry


TEST_LICENSE_KEY = "0123456789abcdef0123456789abcdef01234567"


def make_engine() -> Engine:
    # One shared connection so every thread sees the same in-memory database.
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.setenv("DATABASE_URL", "sqlite://")
    monkeypatch.setenv("NR_APP_NAME", "user-records-test")
    monkeypatch.setenv("NR_LICENSE_KEY", TEST_LICENSE_KEY)
    monkeypatch.setenv("GOAPI_ENDPOINT", "127.0.0.1:8099")
    get_settings.cache_clear()
    reset_metrics()

    yield

    reset_metrics()
    get_settings.cache_clear()


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = make_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def store(sqlite_engine: Engine) -> UserStore:
    return init_store(get_settings(), engine=sqlite_engine)


@pytest.fixture
def telemetry() -> Telemetry:
    settings = get_settings()
    return init_telemetry(settings.telemetry_app_name, settings.telemetry_license_key)


@pytest.fixture
async def api_client(store: UserStore, telemetry: Telemetry) -> AsyncIterator[AsyncClient]:
    app = create_app(get_settings(), store=store, telemetry=telemetry)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
