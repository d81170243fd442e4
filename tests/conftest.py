import os
from pathlib import Path

# Settings are read at import time, so the test database has to be chosen first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SMTP_PASSWORD"] = ""

import pytest
from fastapi.testclient import TestClient

from api.main import app
from core.database.models import Base
from core.database.operations import create_user, engine, get_db, SessionLocal

FIXTURES = Path(__file__).parent / "fixtures"
TEST_PASSWORD = "Password123"


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    monkeypatch.setattr("core.auth.security.PBKDF2_ITERATIONS", 1000)


@pytest.fixture
def hoodie_html():
    return (FIXTURES / "asos_hoodie_results.html").read_text(encoding="utf-8")


@pytest.fixture
def db_session():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    """Test client sharing the test's database session."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def user(db_session):
    return create_user(db_session, "Test User", "test@example.com", TEST_PASSWORD)


@pytest.fixture
def auth_headers(client, user):
    response = client.post("/api/auth/login", json={"email": user.email, "password": TEST_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
