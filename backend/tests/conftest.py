"""Test configuration and fixtures."""

import json
import os
from urllib.parse import parse_qs, urlsplit

# Point the application engine at SQLite before anything imports it
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_canvas_grader.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from canvas_grader.database import Base, get_db
from canvas_grader import models  # noqa: F401
from canvas_grader.auth.models import User, UserCreate
from canvas_grader.auth.service import AuthService
from canvas_grader.models import UserSettings


TEST_USER = {
    "email": "teacher@example.com",
    "password": "TestPass123!",
    "full_name": "Test Teacher",
}

CANVAS_URL = "https://canvas.example.edu/"
CANVAS_TOKEN = "canvas-token-123"


@pytest.fixture(scope="session")
def engine(tmp_path_factory):
    """File-backed SQLite engine shared by the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    engine = create_engine(f"sqlite:///{db_path}", connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    yield engine
    engine.dispose()


@pytest.fixture(autouse=True)
def tables(engine):
    """Every test starts from empty tables."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    from canvas_grader.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_service(db_session):
    return AuthService(db_session)


@pytest.fixture
def test_user(auth_service):
    return auth_service.register_user(UserCreate(**TEST_USER))


@pytest.fixture
def auth_headers(auth_service, test_user):
    return {"Authorization": f"Bearer {auth_service.issue_access_token(test_user)}"}


@pytest.fixture
def canvas_user(db_session, test_user):
    """The test user with Canvas credentials saved in user_settings."""
    db_session.add(UserSettings(user_id=test_user.id, canvas_url=CANVAS_URL, canvas_token=CANVAS_TOKEN))
    db_session.commit()
    return test_user


# --- Canvas HTTP fake ---

class FakeCanvasResponse:
    """Just enough of requests.Response for the Canvas client."""

    def __init__(self, status_code=200, payload=None, reason="OK", text=None):
        self.status_code = status_code
        self.reason = reason
        if text is not None:
            self.content = text.encode("utf-8")
        elif payload is None:
            self.content = b""
        else:
            self.content = json.dumps(payload).encode("utf-8")

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return json.loads(self.content)


class FakeCanvas:
    """Stands in for requests.request; routes are keyed by method and API path."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, method, path, result):
        """``result`` is a response, an exception to raise, or a callable taking the call dict."""
        self.routes[(method, path)] = result

    def __call__(self, method, url, headers=None, data=None, timeout=None):
        parts = urlsplit(url)
        path = parts.path.split("/api/v1/", 1)[-1]
        call = {
            "method": method,
            "url": url,
            "path": path,
            "query": parse_qs(parts.query),
            "headers": headers or {},
            "body": json.loads(data) if data else None,
            "timeout": timeout,
        }
        self.calls.append(call)

        result = self.routes.get((method, path))
        if result is None:
            return FakeCanvasResponse(
                404,
                {"errors": [{"message": "The specified resource does not exist."}]},
                reason="Not Found",
            )
        if isinstance(result, Exception):
            raise result
        if callable(result):
            return result(call)
        return result


@pytest.fixture
def fake_canvas(monkeypatch):
    fake = FakeCanvas()
    monkeypatch.setattr("canvas_grader.canvas.client.requests.request", fake)
    return fake
