"""Outgoing mail for password reset codes.

``SmtpMailer`` renders the Jinja2 templates in ``app/email_templates`` and
sends them over SMTP (STARTTLS or implicit SSL). ``LogMailer`` stands in when
no SMTP host is configured.
"""

import logging
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.config import Settings, get_settings

logger = logging.getLogger("passgate")

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "email_templates"
RESET_SUBJECT = "Password Reset OTP"

env = Environment(loader=FileSystemLoader(TEMPLATE_DIR), autoescape=select_autoescape(["html"]))


def render_reset_email(otp: str, first_name: str, settings: Settings) -> tuple[str, str]:
    """Render the (text, html) bodies of the password reset email."""
    context = {
        "otp": otp,
        "first_name": first_name,
        "expires_minutes": settings.OTP_EXPIRE_MINUTES,
        "app_name": settings.SMTP_FROM_NAME,
    }
    text_body = env.get_template("password_reset_otp.txt").render(context)
    html_body = env.get_template("password_reset_otp.html").render(context)
    return text_body, html_body


class Mailer(ABC):
    """Delivery interface used by the auth service."""

    @abstractmethod
    def send_password_reset_otp(self, email: str, otp: str, first_name: str) -> None:
        """Deliver a reset code. Raises on transport failure."""


class SmtpMailer(Mailer):
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def _connect(self) -> smtplib.SMTP:
        s = self.settings
        if s.SMTP_USE_SSL:
            return smtplib.SMTP_SSL(s.SMTP_HOST, s.SMTP_PORT, timeout=30)
        server = smtplib.SMTP(s.SMTP_HOST, s.SMTP_PORT, timeout=30)
        if s.SMTP_USE_TLS:
            server.starttls()
        return server

    def send_password_reset_otp(self, email: str, otp: str, first_name: str) -> None:
        s = self.settings
        text_body, html_body = render_reset_email(otp, first_name, s)

        msg = EmailMessage()
        msg["From"] = f"{s.SMTP_FROM_NAME} <{s.SMTP_FROM_EMAIL}>" if s.SMTP_FROM_EMAIL else s.SMTP_USERNAME
        msg["To"] = email
        msg["Subject"] = RESET_SUBJECT
        msg.set_content(text_body)
        msg.add_alternative(html_body, subtype="html")

        server = self._connect()
        try:
            if s.SMTP_USERNAME and s.SMTP_PASSWORD:
                server.login(s.SMTP_USERNAME, s.SMTP_PASSWORD)
            server.send_message(msg)
        finally:
            try:
                server.quit()
            except smtplib.SMTPException:
                pass

        logger.info("Password reset email sent to %s", email)


class LogMailer(Mailer):
    """Writes reset codes to the log. The code itself is only shown in development."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def send_password_reset_otp(self, email: str, otp: str, first_name: str) -> None:
        if self.settings.APP_ENV == "development":
            logger.info("PASSWORD RESET OTP for %s: %s", email, otp)
        else:
            logger.warning("SMTP is not configured; password reset code for %s was not delivered", email)


_mailer: Mailer | None = None


def get_mailer() -> Mailer:
    """Get singleton mailer instance."""
    global _mailer
    if _mailer is None:
        settings = get_settings()
        _mailer = SmtpMailer(settings) if settings.SMTP_HOST else LogMailer(settings)
    return _mailer
