"""Pytest configuration and fixtures for Switchboard tests.

Test isolation strategy:
- Every test gets its own SQLite database file under tmp_path, created from
  the ORM metadata (TEST_DATABASE_URL overrides this, e.g. to run against
  PostgreSQL; that database is created and dropped per test)
- The app under test resolves sessions and tokens against that database
  through dependency overrides and an explicit AccessTokenVerifier
- Settings are cleared before and after each test
"""

import os
import sys
from collections.abc import Callable, Generator
from pathlib import Path

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("SWITCHBOARD_ENV", "test")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from switchboard.app import add_request_id_middleware, create_app
from switchboard.auth.verifier import AccessTokenVerifier
from switchboard.config import clear_settings_cache
from switchboard.db.engine import create_db_engine
from switchboard.db.models import Base
from switchboard.db.session import create_session_factory, get_db
from tests.factories import create_test_token, create_test_user
from tests.helpers import AuthedUser


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Make every test read settings fresh from the environment."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def engine(tmp_path: Path) -> Generator[Engine, None, None]:
    """Create a fresh database with the full schema for one test."""
    database_url = os.environ.get("TEST_DATABASE_URL") or (
        f"sqlite+pysqlite:///{tmp_path / 'switchboard_test.db'}"
    )
    engine = create_db_engine(database_url)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    """Session factory bound to the per-test engine."""
    return create_session_factory(engine)


@pytest.fixture
def db_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Provide a database session for direct setup and assertions.

    Rows written through the API are committed by their own sessions; call
    db_session.expire_all() before re-reading rows loaded earlier.
    """
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def app(session_factory: sessionmaker[Session]) -> FastAPI:
    """Provide the full app (auth + request-id middleware) on the test database."""
    app = create_app(token_verifier=AccessTokenVerifier(session_factory))
    add_request_id_middleware(app, log_requests=False)

    def override_get_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Provide a FastAPI test client for the app."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def make_user(session_factory: sessionmaker[Session]) -> Callable[..., AuthedUser]:
    """Factory fixture: create a user with a live token.

    Usage:
        alice = make_user("Alice")
        client.get("/user", headers=alice.headers)
    """

    def _make(name: str = "Test User", email: str | None = None) -> AuthedUser:
        with session_factory() as session:
            user = create_test_user(session, name=name, email=email)
            token = create_test_token(session, user.id)
        return AuthedUser(id=user.id, name=user.name, email=user.email, token=token)

    return _make
