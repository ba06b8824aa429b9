"""Tests for password reset email rendering and delivery."""

from unittest.mock import patch

import pytest

from app.config import Settings
from app.services.mailer import RESET_SUBJECT, LogMailer, Mailer, SmtpMailer, render_reset_email


def make_settings(**overrides) -> Settings:
    settings = Settings()
    settings.SMTP_HOST = "smtp.example.com"
    settings.SMTP_PORT = 587
    settings.SMTP_USERNAME = "mailer@example.com"
    settings.SMTP_PASSWORD = "secret"
    settings.SMTP_FROM_EMAIL = "no-reply@example.com"
    settings.SMTP_FROM_NAME = "Passgate"
    settings.SMTP_USE_TLS = True
    settings.SMTP_USE_SSL = False
    settings.OTP_EXPIRE_MINUTES = 10
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


class TestRender:
    def test_bodies_contain_code_and_name(self):
        text_body, html_body = render_reset_email("012345", "Ann", make_settings())
        for body in (text_body, html_body):
            assert "012345" in body
            assert "Ann" in body
            assert "10 minutes" in body

    def test_html_escapes_name(self):
        _, html_body = render_reset_email("012345", "<script>", make_settings())
        assert "<script>" not in html_body
        assert "&lt;script&gt;" in html_body


class TestSmtpMailer:
    def test_starttls_login_and_send(self):
        with patch("app.services.mailer.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value
            SmtpMailer(make_settings()).send_password_reset_otp("ann@x.com", "012345", "Ann")

        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=30)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer@example.com", "secret")
        msg = server.send_message.call_args.args[0]
        assert msg["To"] == "ann@x.com"
        assert msg["Subject"] == RESET_SUBJECT
        assert msg["From"] == "Passgate <no-reply@example.com>"
        server.quit.assert_called_once()

    def test_ssl_mode(self):
        with patch("app.services.mailer.smtplib.SMTP_SSL") as ssl_cls:
            SmtpMailer(make_settings(SMTP_USE_SSL=True, SMTP_PORT=465)).send_password_reset_otp(
                "ann@x.com", "012345", "Ann"
            )
        ssl_cls.assert_called_once_with("smtp.example.com", 465, timeout=30)
        ssl_cls.return_value.starttls.assert_not_called()

    def test_connection_closed_on_failure(self):
        with patch("app.services.mailer.smtplib.SMTP") as smtp_cls:
            server = smtp_cls.return_value
            server.send_message.side_effect = OSError("boom")
            with pytest.raises(OSError):
                SmtpMailer(make_settings()).send_password_reset_otp("ann@x.com", "012345", "Ann")
        server.quit.assert_called_once()


class TestLogMailer:
    def test_development_logs_code(self, caplog):
        caplog.set_level("INFO", logger="passgate")
        LogMailer(make_settings(APP_ENV="development")).send_password_reset_otp("ann@x.com", "012345", "Ann")
        assert "012345" in caplog.text

    def test_production_hides_code(self, caplog):
        caplog.set_level("INFO", logger="passgate")
        LogMailer(make_settings(APP_ENV="production")).send_password_reset_otp("ann@x.com", "012345", "Ann")
        assert "012345" not in caplog.text
        assert "not delivered" in caplog.text


class TestMailerInterface:
    def test_base_class_is_abstract(self):
        with pytest.raises(TypeError):
            Mailer()

    def test_subclass_must_implement_send(self):
        class SilentMailer(Mailer):
            pass

        with pytest.raises(TypeError):
            SilentMailer()


class TestDelivery:
    def test_auth_service_reports_failure_without_code(self, auth_service, mailer, caplog):
        mailer.fail = True
        assert auth_service.deliver_otp("ann@x.com", "012345", "Ann") is False
        assert "012345" not in caplog.text

    def test_auth_service_delivers(self, auth_service, mailer):
        assert auth_service.deliver_otp("ann@x.com", "012345", "Ann") is True
        assert mailer.sent == [{"email": "ann@x.com", "otp": "012345", "first_name": "Ann"}]
