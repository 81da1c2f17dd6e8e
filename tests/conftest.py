from __future__ import annotations

import random
import string
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import salesorders.persistence.pg as pg
from salesorders.core.config import get_settings
from salesorders.persistence.models import Base
from salesorders.persistence.store import OrderStore


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite"


@pytest.fixture(scope="session", autouse=True)
def configure_test_engine(test_db_path: Path):
    settings = get_settings()
    settings.auth_enabled = True
    settings.settlement_currency = "EUR"

    engine = create_engine(
        f"sqlite+pysqlite:///{test_db_path}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    TestSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

    pg.engine = engine
    pg.SessionLocal = TestSessionLocal

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(configure_test_engine):
    from salesorders.main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture()
def session(configure_test_engine):
    with pg.session_scope(actor_id="clerk-test") as s:
        yield s


@pytest.fixture()
def store(session) -> OrderStore:
    return OrderStore(session)


@pytest.fixture()
def org_code() -> str:
    return "".join(random.choices(string.ascii_uppercase, k=4))


@pytest.fixture()
def auth_headers():
    settings = get_settings()
    return {
        "clerk": {"X-API-Key": settings.clerk_api_key},
        "auditor": {"X-API-Key": settings.auditor_api_key},
        "system": {"Authorization": f"Bearer {settings.system_api_key}"},
    }
