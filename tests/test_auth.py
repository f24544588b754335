from datetime import timedelta

import auth
from mailer import EmailService
from models import User
from services import accounts

SIGNUP = "/api/v1/auth/signup"
LOGIN = "/api/v1/auth/login"


def signup(client, email="grace@example.com", password="supersecret"):
    return client.post(SIGNUP, json={"name": "Grace Hopper", "email": email, "password": password})


def test_password_hashing():
    hashed = auth.get_password_hash("correct horse battery staple")
    assert auth.verify_password("correct horse battery staple", hashed)
    assert not auth.verify_password("wrong", hashed)
    assert not auth.verify_password("anything", "not-a-bcrypt-hash")


def test_long_passwords_are_not_truncated():
    base = "x" * 80
    hashed = auth.get_password_hash(base + "a")
    assert not auth.verify_password(base + "b", hashed)


def test_emails_render_without_api_key():
    service = EmailService(api_key="")

    assert service.send_verification_email("grace@example.com", "Grace Hopper", "123456") == {"message_id": None}
    assert service.send_password_reset_email("grace@example.com", "Grace Hopper", "tok") == {"message_id": None}

    html, text = service.render(
        "verify_email", name="Grace Hopper", otp="123456", expires_minutes=10, app_name="StudyHive"
    )
    assert "123456" in html
    assert text.startswith("Welcome to StudyHive, Grace Hopper!")


def test_signup_and_resend_send_real_emails(client):
    response = signup(client)
    assert response.status_code == 201
    assert response.json()["data"]["access_token"]

    response = client.post("/api/v1/auth/resend-verification", json={"email": "grace@example.com"})
    assert response.status_code == 200

    known = client.post("/api/v1/auth/forgot-password", json={"email": "grace@example.com"})
    unknown = client.post("/api/v1/auth/forgot-password", json={"email": "nobody@example.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()


def test_signup_login_and_me(client):
    response = signup(client)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["user"]["email"] == "grace@example.com"
    assert data["user"]["is_verified"] is False
    assert data["token_type"] == "bearer"

    response = client.post(LOGIN, json={"email": "GRACE@example.com", "password": "supersecret"})
    assert response.status_code == 200
    token = response.json()["data"]["access_token"]

    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    profile = response.json()["data"]
    assert profile["name"] == "Grace Hopper"
    assert "password_hash" not in profile
    assert "refresh_token" not in profile


def test_duplicate_signup_conflicts(client):
    signup(client)
    response = signup(client)
    assert response.status_code == 409
    assert response.json()["message"] == "Email already registered"


def test_wrong_password(client):
    signup(client)
    response = client.post(LOGIN, json={"email": "grace@example.com", "password": "nope-nope"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid email or password"


def test_verify_email_with_otp(client):
    otp = signup(client).json()["data"]["verification_otp"]

    response = client.post("/api/v1/auth/verify-email", json={"otp": "12ab"})
    assert response.status_code == 400

    response = client.post("/api/v1/auth/verify-email", json={"otp": otp})
    assert response.status_code == 200
    assert User.objects.get(email="grace@example.com").is_verified is True

    response = client.post("/api/v1/auth/resend-verification", json={"email": "grace@example.com"})
    assert response.json()["message"] == "Email already verified"


def test_refresh_and_logout(client):
    tokens = signup(client).json()["data"]
    response = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200
    assert response.json()["data"]["access_token"]

    headers = {"Authorization": f"Bearer {tokens['access_token']}"}
    assert client.post("/api/v1/auth/logout", headers=headers).status_code == 200

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 401


def test_access_token_is_not_a_refresh_token(client):
    tokens = signup(client).json()["data"]
    response = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert response.status_code == 401


def test_forgot_and_reset_password(client, monkeypatch):
    signup(client)
    issued = {}

    def capture(email, name, token):
        issued["token"] = token
        return {"message_id": None}

    monkeypatch.setattr(accounts.email_service, "send_password_reset_email", capture)

    response = client.post("/api/v1/auth/forgot-password", json={"email": "grace@example.com"})
    assert response.status_code == 200
    unknown = client.post("/api/v1/auth/forgot-password", json={"email": "nobody@example.com"})
    assert unknown.json()["message"] == response.json()["message"]

    response = client.post(
        "/api/v1/auth/reset-password", json={"token": issued["token"], "new_password": "brand-new-pass"}
    )
    assert response.status_code == 200

    assert client.post(LOGIN, json={"email": "grace@example.com", "password": "brand-new-pass"}).status_code == 200
    response = client.post(
        "/api/v1/auth/reset-password", json={"token": issued["token"], "new_password": "another-pass"}
    )
    assert response.status_code == 400


def test_change_password(client, student, headers_for):
    response = client.post(
        "/api/v1/auth/change-password",
        json={"current_password": "wrong-password", "new_password": "newpassword1"},
        headers=headers_for(student),
    )
    assert response.status_code == 401

    response = client.post(
        "/api/v1/auth/change-password",
        json={"current_password": "password123", "new_password": "newpassword1"},
        headers=headers_for(student),
    )
    assert response.status_code == 200
    assert auth.verify_password("newpassword1", User.objects.get(id=student.id).password_hash)


def test_missing_and_bad_tokens(client, student):
    response = client.get("/api/v1/auth/me")
    assert response.status_code == 401
    assert response.json()["message"] == "No token provided, authorization denied"
    assert response.headers["www-authenticate"] == "Bearer"

    response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer garbage"})
    assert response.json()["message"] == "Invalid token"

    expired = auth.create_access_token(student, expires_delta=timedelta(minutes=-1))
    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert response.json()["message"] == "Token expired"


def test_deactivated_account_is_forbidden(client, student, headers_for):
    User.objects(id=student.id).update_one(set__is_active=False)
    response = client.get("/api/v1/auth/me", headers=headers_for(student))
    assert response.status_code == 403
    assert response.json()["message"] == "Account is deactivated"
