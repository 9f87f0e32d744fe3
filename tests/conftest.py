import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import crud
from app.api.deps import get_notifier
from app.db import get_db, get_session_factory
from app.main import create_app
from app.models.base import Base
from app.settings import settings
from fakes import FakeNotifier, get_or_create_user


def make_session():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)

@pytest.fixture()
def session_factory():
    return make_session()

@pytest.fixture()
def notifier():
    return FakeNotifier()

@pytest.fixture()
def test_app(session_factory, notifier):
    TestingSessionLocal = session_factory
    app = create_app()

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestingSessionLocal
    app.dependency_overrides[get_notifier] = lambda: notifier
    return app, TestingSessionLocal


@pytest.fixture()
def client(test_app):
    app, _ = test_app
    return TestClient(app)


@pytest.fixture()
def api_secret(monkeypatch):
    monkeypatch.setattr(settings, "API_KEY_SECRET", "test-secret")
    monkeypatch.setattr(settings, "API_KEY", None)


@pytest.fixture()
def auth_headers(test_app, api_secret):
    app, TestingSessionLocal = test_app
    with TestingSessionLocal() as db:
        user = get_or_create_user(db, "owner@example.com", name="Owner")
        token = crud.rotate_user_api_key(db, user.id)
    return {"Authorization": f"Bearer {token}"}
