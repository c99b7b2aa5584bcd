"""
Tests for the SMTP mailer and the contact route.
"""

import smtplib
from unittest.mock import patch

import pytest

from app.utils import Mailer


@pytest.fixture
def smtp():
    with patch("app.utils.smtplib.SMTP") as smtp_cls:
        yield smtp_cls


def _sent(smtp):
    server = smtp.return_value.__enter__.return_value
    assert server.sendmail.call_count == 1
    return server.sendmail.call_args.args


class TestMailer:
    def test_verification_email(self, settings, smtp):
        Mailer(settings).send_verification_email("ann@x.com", "Ann", "abc123")

        smtp.assert_called_once_with("smtp.test.dev", 587)
        server = smtp.return_value.__enter__.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("noreply@test.dev", "smtp-password")

        sender, recipient, message = _sent(smtp)
        assert sender == "noreply@test.dev"
        assert recipient == "ann@x.com"
        assert "Subject: Verify your account" in message
        assert "Welcome, Ann!" in message
        assert "http://frontend.test/verify-email?token=abc123" in message

    def test_reset_email(self, settings, smtp):
        Mailer(settings).send_password_reset_email("ann@x.com", "xyz789")

        _, recipient, message = _sent(smtp)
        assert recipient == "ann@x.com"
        assert "Subject: Password Reset Request" in message
        assert "http://frontend.test/reset-password?token=xyz789" in message
        assert "15 minutes" in message

    def test_contact_message_is_escaped(self, settings, smtp):
        Mailer(settings).send_contact_message("Eve", "eve@x.com", "<script>hi</script>")

        _, recipient, message = _sent(smtp)
        assert recipient == "noreply@test.dev"
        assert "Reply-To: eve@x.com" in message
        assert "&lt;script&gt;" in message

    def test_delivery_failure_propagates(self, settings, smtp):
        server = smtp.return_value.__enter__.return_value
        server.sendmail.side_effect = smtplib.SMTPException("boom")
        with pytest.raises(smtplib.SMTPException):
            Mailer(settings).send_password_reset_email("ann@x.com", "t")

    def test_connection_failure_propagates(self, settings, smtp):
        smtp.side_effect = ConnectionRefusedError("no relay")
        with pytest.raises(ConnectionRefusedError):
            Mailer(settings).send_password_reset_email("ann@x.com", "t")


class TestContactRoute:
    def test_sends_message(self, client, mailer):
        response = client.post(
            "/api/contact",
            json={"c_name": "Eve", "c_email": "eve@x.com", "c_message": "Hello"},
        )
        assert response.status_code == 200
        assert response.json() == {"message": "Message sent successfully!"}
        assert mailer.contacts == [{"name": "Eve", "email": "eve@x.com", "message": "Hello"}]

    @pytest.mark.parametrize("missing", ["c_name", "c_email", "c_message"])
    def test_all_fields_required(self, client, mailer, missing):
        body = {"c_name": "Eve", "c_email": "eve@x.com", "c_message": "Hello"}
        body[missing] = "  "
        response = client.post("/api/contact", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "All fields are required"}
        assert mailer.contacts == []

    def test_relay_failure_is_500(self, client, mailer):
        mailer.fail = True
        response = client.post(
            "/api/contact",
            json={"c_name": "Eve", "c_email": "eve@x.com", "c_message": "Hello"},
        )
        assert response.status_code == 500
        assert response.json() == {"error": "relay down"}
