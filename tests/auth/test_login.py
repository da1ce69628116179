"""
Tests for login and logout.
"""
import pytest

from askfield.core.audit_models import AuditLog
from askfield.core.security import SessionIssuer

PASSWORD = "secret1"


def test_login_success(client, settings, verified_account):
    email = verified_account()
    response = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Login successful"
    assert data["user"]["email"] == email
    assert data["user"]["isVerified"] is True
    assert data["user"]["profileCompleted"] is False
    assert "passwordHash" not in data["user"]

    account_id = SessionIssuer(settings.secret_key).validate(data["token"])
    assert account_id == data["user"]["id"]


def test_login_email_is_case_insensitive(client, verified_account):
    verified_account()
    response = client.post("/api/auth/login", json={"email": "  A@X.COM ", "password": PASSWORD})
    assert response.status_code == 200


@pytest.mark.parametrize("body", [
    {},
    {"email": "a@x.com"},
    {"password": PASSWORD},
    {"email": "   ", "password": PASSWORD},
    {"email": "a@x.com", "password": ""},
])
def test_login_missing_credentials(client, body):
    response = client.post("/api/auth/login", json=body)
    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Please provide email and password"}


def test_unknown_email_and_wrong_password_look_the_same(client, db, verified_account):
    email = verified_account()
    wrong_password = client.post("/api/auth/login", json={"email": email, "password": "wrong-password"})
    unknown_email = client.post("/api/auth/login", json={"email": "ghost@x.com", "password": PASSWORD})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {
        "success": False,
        "message": "Invalid email or password",
    }
    failures = db.query(AuditLog).filter(AuditLog.action == "LOGIN_FAILED_INVALID_CREDENTIALS").count()
    assert failures == 2


def test_login_unverified(client, register):
    register()
    response = client.post("/api/auth/login", json={"email": "a@x.com", "password": PASSWORD})
    assert response.status_code == 403
    data = response.json()
    assert data["success"] is False
    assert data["isVerified"] is False
    assert "token" not in data


def test_unverified_is_refused_regardless_of_password(client, register):
    register()
    response = client.post("/api/auth/login", json={"email": "a@x.com", "password": "wrong-password"})
    assert response.status_code == 403
    assert response.json()["isVerified"] is False


def test_logout(client):
    response = client.post("/api/auth/logout")
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Logout successful. Please delete your token on the client side.",
    }


def test_token_still_valid_after_logout(client, auth_headers):
    headers = auth_headers()
    client.post("/api/auth/logout", headers=headers)
    assert client.get("/api/auth/me", headers=headers).status_code == 200
