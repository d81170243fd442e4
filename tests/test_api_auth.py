import re

import pytest

from core.auth.security import PASSWORD_POLICY_MESSAGE
from core.database.operations import create_user, get_user_by_email

RESET_REQUESTED = "If a user with that email exists, a password reset code will be sent"


@pytest.fixture
def outbox(monkeypatch):
    """Captures outgoing email instead of talking to SMTP."""
    sent = []

    def send_email(to, subject, text, html=None, from_addr=None):
        sent.append({"to": to, "subject": subject, "text": text, "html": html})
        return True

    monkeypatch.setattr("api.routes.auth.send_email", send_email)
    return sent


def reset_code_from(message):
    return re.search(r"\b(\d{6})\b", message["text"]).group(1)


def test_signup(client, db_session):
    response = client.post("/api/auth/signup", json={
        "name": " Jane Doe ",
        "email": "Jane@Example.com ",
        "password": "Password123",
    })
    assert response.status_code == 201
    assert response.json() == {"success": True, "message": "User registered successfully"}

    user = get_user_by_email(db_session, "jane@example.com")
    assert user.name == "Jane Doe"
    assert user.email == "jane@example.com"
    assert user.auth_provider == "local"
    assert user.password_hash != "Password123"


@pytest.mark.parametrize("payload, message", [
    ({"email": "a@b.co", "password": "Password123"}, "Valid name is required"),
    ({"name": "x" * 51, "email": "a@b.co", "password": "Password123"}, "Name cannot be more than 50 characters"),
    ({"name": "Jane", "email": "not-an-email", "password": "Password123"}, "Valid email is required"),
    ({"name": "Jane", "email": "a@b.co", "password": "short1"}, PASSWORD_POLICY_MESSAGE),
    ({"name": "Jane", "email": "a@b.co", "password": "lettersonly"}, PASSWORD_POLICY_MESSAGE),
])
def test_signup_validation(client, payload, message):
    response = client.post("/api/auth/signup", json=payload)
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": message}


def test_signup_duplicate_email(client, user):
    response = client.post("/api/auth/signup", json={
        "name": "Someone Else",
        "email": "TEST@example.com",
        "password": "Password123",
    })
    assert response.status_code == 400
    assert response.json()["message"] == "Email already in use"


def test_login_and_me(client, user):
    response = client.post("/api/auth/login", json={"email": "test@example.com", "password": "Password123"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["user"] == {"id": user.id, "name": "Test User", "email": "test@example.com"}

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["user"]["id"] == user.id


def test_login_wrong_password(client, user):
    response = client.post("/api/auth/login", json={"email": "test@example.com", "password": "Wrong12345"})
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid credentials"}


def test_login_unknown_email(client):
    response = client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "Password123"})
    assert response.status_code == 401


def test_me_requires_token(client):
    response = client.get("/api/auth/me")
    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "No token provided"}


def test_me_rejects_unknown_token(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-real-token"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


def test_logout_revokes_token(client, auth_headers):
    response = client.post("/api/auth/logout", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully"
    assert client.get("/api/auth/me", headers=auth_headers).status_code == 401


def test_password_reset_flow(client, db_session, user, auth_headers, outbox):
    response = client.post("/api/auth/forgot-password", json={"email": "test@example.com"})
    assert response.status_code == 200
    assert response.json()["message"] == RESET_REQUESTED
    [message] = outbox
    assert message["to"] == "test@example.com"
    code = reset_code_from(message)

    # Not verified yet
    response = client.post("/api/auth/reset-password-with-code",
                           json={"email": "test@example.com", "password": "NewPassword1"})
    assert response.status_code == 400

    wrong = "000000" if code != "000000" else "111111"
    response = client.post("/api/auth/verify-reset-code", json={"email": "test@example.com", "code": wrong})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid or expired code"

    response = client.post("/api/auth/verify-reset-code", json={"email": "test@example.com", "code": code})
    assert response.status_code == 200
    assert response.json()["message"] == "Reset code verified successfully"

    response = client.post("/api/auth/reset-password-with-code",
                           json={"email": "test@example.com", "password": "NewPassword1"})
    assert response.status_code == 200
    assert response.json()["message"] == "Password reset successful"
    assert outbox[-1]["subject"] == "Password Reset Successful"

    # Existing logins are revoked, the new password works, the old one does not
    assert client.get("/api/auth/me", headers=auth_headers).status_code == 401
    assert client.post("/api/auth/login",
                       json={"email": "test@example.com", "password": "Password123"}).status_code == 401
    assert client.post("/api/auth/login",
                       json={"email": "test@example.com", "password": "NewPassword1"}).status_code == 200

    # The code is single use
    response = client.post("/api/auth/verify-reset-code", json={"email": "test@example.com", "code": code})
    assert response.status_code == 400


def test_forgot_password_unknown_email_sends_nothing(client, outbox):
    response = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
    assert response.status_code == 200
    assert response.json()["message"] == RESET_REQUESTED
    assert outbox == []


def test_forgot_password_email_failure_clears_code(client, db_session, user, monkeypatch):
    monkeypatch.setattr("api.routes.auth.send_email", lambda *args, **kwargs: False)
    response = client.post("/api/auth/forgot-password", json={"email": "test@example.com"})
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Email could not be sent"}

    db_session.expire_all()
    assert get_user_by_email(db_session, "test@example.com").reset_code is None


def test_reset_password_requires_fields(client):
    response = client.post("/api/auth/reset-password-with-code", json={"email": "test@example.com"})
    assert response.status_code == 400
    assert response.json()["message"] == "Email and new password are required"


def test_check_provider(client, db_session, user):
    create_user(db_session, "Google User", "g@example.com", auth_provider="google")

    response = client.post("/api/auth/check-provider", json={"email": "g@example.com"})
    assert response.json() == {"success": True, "provider": "Google"}

    response = client.post("/api/auth/check-provider", json={"email": "test@example.com"})
    assert response.json() == {"success": True, "provider": None}

    response = client.post("/api/auth/check-provider", json={})
    assert response.status_code == 400
    assert response.json()["message"] == "Email is required"
