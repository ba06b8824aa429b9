"""Configuration settings for Passgate."""

import os
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache

from dotenv import load_dotenv

from app.routes import PUBLIC_ROUTES

load_dotenv()


def _get_bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y"}


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./passgate.db")

    # Tokens and OTPs
    TOKEN_EXPIRE_MINUTES: int = int(os.getenv("TOKEN_EXPIRE_MINUTES", "1440"))
    OTP_EXPIRE_MINUTES: int = int(os.getenv("OTP_EXPIRE_MINUTES", "10"))
    OTP_LENGTH: int = int(os.getenv("OTP_LENGTH", "6"))
    PASSWORD_MIN_LENGTH: int = int(os.getenv("PASSWORD_MIN_LENGTH", "8"))

    # Mail
    SMTP_HOST: str | None = os.getenv("SMTP_HOST")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME: str | None = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD: str | None = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL: str = os.getenv("SMTP_FROM_EMAIL", os.getenv("SMTP_USERNAME", ""))
    SMTP_FROM_NAME: str = os.getenv("SMTP_FROM_NAME", "Passgate")
    SMTP_USE_TLS: bool = _get_bool_env("SMTP_USE_TLS", default=True)
    SMTP_USE_SSL: bool = _get_bool_env("SMTP_USE_SSL", default=False)

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        errors = []
        if not self.SMTP_HOST:
            errors.append("SMTP_HOST is not set - password reset codes will only be written to the log")
        if self.SMTP_USE_TLS and self.SMTP_USE_SSL:
            errors.append("SMTP_USE_TLS and SMTP_USE_SSL are both enabled - SSL takes precedence")
        if self.OTP_EXPIRE_MINUTES <= 0 or self.TOKEN_EXPIRE_MINUTES <= 0:
            errors.append("Token and OTP lifetimes must be positive")
        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


@dataclass(frozen=True)
class AuthConfig:
    """Policy knobs handed to the auth services and the request gate.

    Built once from ``Settings`` in production; tests construct it directly
    to get short lifetimes without touching the environment.
    """

    token_ttl: timedelta | None = timedelta(hours=24)
    otp_ttl: timedelta = timedelta(minutes=10)
    otp_length: int = 6
    password_min_length: int = 8
    token_name: str = "auth_token"
    public_routes: frozenset = PUBLIC_ROUTES

    @classmethod
    def from_settings(cls, settings: Settings, public_routes: frozenset = PUBLIC_ROUTES) -> "AuthConfig":
        return cls(
            token_ttl=timedelta(minutes=settings.TOKEN_EXPIRE_MINUTES),
            otp_ttl=timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
            otp_length=settings.OTP_LENGTH,
            password_min_length=settings.PASSWORD_MIN_LENGTH,
            public_routes=public_routes,
        )
