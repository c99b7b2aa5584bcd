"""Pytest configuration and shared fixtures."""

import smtplib

import pytest
from fastapi.testclient import TestClient

from app import models
from app.core.config import Settings
from app.main import create_app


class FakeMailer:
    """Records outgoing mail instead of talking to an SMTP relay."""

    def __init__(self):
        self.verifications = []
        self.resets = []
        self.contacts = []
        self.fail = False

    def _check(self):
        if self.fail:
            raise smtplib.SMTPException("relay down")

    def send_verification_email(self, to_email, name, token):
        self._check()
        self.verifications.append({"to": to_email, "name": name, "token": token})

    def send_password_reset_email(self, to_email, token):
        self._check()
        self.resets.append({"to": to_email, "token": token})

    def send_contact_message(self, name, email, message):
        self._check()
        self.contacts.append({"name": name, "email": email, "message": message})


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        SECRET_KEY="test-secret-key",
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        SMTP_SERVER="smtp.test.dev",
        SMTP_PORT=587,
        SMTP_USER="noreply@test.dev",
        SMTP_PASSWORD="smtp-password",
        FRONTEND_URL="http://frontend.test",
        BASE_URL="http://testserver",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def app(settings, mailer):
    return create_app(settings, mailer=mailer)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(app, client):
    session = app.state.session_factory()
    yield session
    session.close()


def find_user(db, email):
    db.expire_all()
    return db.query(models.User).filter(models.User.email == email).first()


def signup(client, name="Ann", email="ann@x.com", password="pw1"):
    return client.post("/api/signup", json={"name": name, "email": email, "password": password})


def register_verified(client, mailer, name="Ann", email="ann@x.com", password="pw1"):
    """Sign up, verify and log in; returns the session token."""
    assert signup(client, name, email, password).status_code == 200
    token = mailer.verifications[-1]["token"]
    assert client.get("/api/verify-email", params={"token": token}).status_code == 200
    response = client.post("/api/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["token"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}
