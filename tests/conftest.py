from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from linkapi.config import Settings
from linkapi.database.session import get_db
from linkapi.models import Base

from factories import NOW


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", _enable_foreign_keys)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def file_session_factory(tmp_path):
    """File-backed SQLite so several threads can hold their own connections."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'concurrency.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    event.listen(engine, "connect", _enable_foreign_keys)
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )
    engine.dispose()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        FRONTEND_URL="https://lnk.test",
        MINIMUM_PAYOUT=Decimal("10.00"),
        STORAGE_RETRY_ATTEMPTS=1,
        CLICK_RETENTION_DAYS=30,
    )


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def app(session_factory):
    from linkapi.main import create_app

    app = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
