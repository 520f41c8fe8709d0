import os

os.environ.setdefault("ENV", "test")

import pytest

from app.config import Settings
from app.db import DatabaseManager
from app.services.session_store import SessionStore

pytest_plugins = [
    "tests.fixtures.client_fixtures",
    "tests.fixtures.engine_fixtures",
]


@pytest.fixture(scope="function")
def db_manager():
    """Fresh in-memory SQLite database with all tables created."""
    manager = DatabaseManager("sqlite+pysqlite:///:memory:")
    manager.create_all()
    yield manager
    manager.drop_all()
    manager.dispose()


@pytest.fixture(scope="function")
def db(db_manager):
    with db_manager.db_session() as session:
        yield session


@pytest.fixture(scope="function")
def store(db_manager):
    return SessionStore(db_manager)


@pytest.fixture(scope="function")
def settings(tmp_path):
    return Settings(
        media_root=str(tmp_path / "media"),
        attendant_token=None,
        disable_auth=False,
        broadcast_undeliverable=False,
        emit_error_events=False,
    )


@pytest.fixture(scope="function")
def app(settings, db_manager, clock):
    from app.main import create_app

    return create_app(testing=True, settings=settings, db_manager=db_manager, clock=clock)


@pytest.fixture(scope="function")
def client(app):
    """HTTP and websocket test client; the app's lifespan runs around it."""
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client
