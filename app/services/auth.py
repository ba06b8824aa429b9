"""Authentication service."""

import logging
from dataclasses import dataclass

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from app.config import AuthConfig, get_settings
from app.errors import InvalidCredentials, InvalidOtp, OtpExpiredOrMissing, ValidationFailed
from app.models.user import User
from app.services.credentials import CredentialStore
from app.services.mailer import Mailer, get_mailer
from app.services.otp import OtpStore
from app.services.tokens import AuthContext, TokenService

logger = logging.getLogger("passgate")


@dataclass
class AuthResult:
    """A signed-in user and the plaintext token issued for this session."""

    user: User
    token: str


class AuthService:
    """Handles registration, login, password reset and session management."""

    def __init__(
        self,
        config: AuthConfig,
        mailer: Mailer,
        credentials: CredentialStore | None = None,
        otps: OtpStore | None = None,
        tokens: TokenService | None = None,
    ) -> None:
        self.config = config
        self.mailer = mailer
        self.credentials = credentials or CredentialStore(password_min_length=config.password_min_length)
        self.otps = otps or OtpStore(ttl=config.otp_ttl, length=config.otp_length)
        self.tokens = tokens or TokenService(ttl=config.token_ttl)

    def signup(self, db: Session, first_name: str, last_name: str, email: str, password: str) -> AuthResult:
        """Register a new user and sign them in."""
        logger.info("Signup attempt started: email=%s", email)
        user = self.credentials.create(db, first_name, last_name, email, password)
        token = self.tokens.issue(db, user, self.config.token_name)
        return AuthResult(user=user, token=token)

    def login(self, db: Session, email: str, password: str) -> AuthResult:
        """Authenticate by email and password.

        Unknown email and wrong password raise the same InvalidCredentials.
        """
        logger.info("Login attempt: email=%s", email)
        user = self.credentials.find_by_email(db, email)
        if user is None or not self.credentials.verify_password(user, password):
            logger.warning("Failed login attempt: email=%s", email)
            raise InvalidCredentials()

        token = self.tokens.issue(db, user, self.config.token_name)
        return AuthResult(user=user, token=token)

    def forgot_password(self, db: Session, email: str, background_tasks: BackgroundTasks | None = None) -> None:
        """Issue a reset code and hand it to the mailer.

        Unknown addresses are ignored silently so callers can't discover
        registered accounts. With ``background_tasks`` delivery happens after
        the response is sent; otherwise it runs inline.
        """
        user = self.credentials.find_by_email(db, email)
        if user is None:
            logger.info("Password reset requested for unknown email: %s", email)
            return

        otp, expires_at = self.otps.issue(db, user.email)
        logger.info("Password reset code issued: user_id=%s expires_at=%s", user.id, expires_at.isoformat())

        if background_tasks is not None:
            background_tasks.add_task(self.deliver_otp, user.email, otp, user.first_name)
        else:
            self.deliver_otp(user.email, otp, user.first_name)

    def deliver_otp(self, email: str, otp: str, first_name: str) -> bool:
        """Send the code, logging (without the code) if delivery fails."""
        try:
            self.mailer.send_password_reset_otp(email, otp, first_name)
        except Exception as exc:
            logger.error("Failed to send password reset email to %s: %s", email, type(exc).__name__)
            return False
        return True

    def reset_password(
        self,
        db: Session,
        email: str,
        otp: str,
        password: str,
        password_confirmation: str,
    ) -> None:
        """Set a new password using an emailed code, then revoke every session."""
        errors: dict[str, list[str]] = {}
        if len(otp) != self.config.otp_length:
            errors["otp"] = [f"The otp field must be {self.config.otp_length} characters."]
        if password != password_confirmation:
            errors["password"] = ["The password field confirmation does not match."]
        if errors:
            raise ValidationFailed(errors=errors)
        self.credentials.validate_password(password)

        self.otps.sweep_expired(db, email)
        records = self.otps.find_valid(db, email)
        if not records:
            logger.info("Password reset with no live code: email=%s", email)
            raise OtpExpiredOrMissing()

        if not self.otps.matches(records, otp):
            logger.warning("Invalid password reset code: email=%s", email)
            raise InvalidOtp()

        user = self.credentials.find_by_email(db, email)
        if user is None:
            raise OtpExpiredOrMissing()

        # New hash, session revocation and code consumption land together or not at all
        try:
            self.credentials.set_password(db, user, password, commit=False)
            revoked = self.tokens.revoke_all(db, user, commit=False)
            self.otps.consume(db, email, commit=False)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info("Password reset completed: user_id=%s revoked_tokens=%d", user.id, revoked)

    def get_profile(self, ctx: AuthContext) -> User:
        return ctx.user

    def update_profile(
        self,
        db: Session,
        ctx: AuthContext,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        return self.credentials.update_profile(db, ctx.user, first_name=first_name, last_name=last_name)

    def logout(self, db: Session, ctx: AuthContext) -> None:
        """Revoke the token used for this request only."""
        user_id, token_id = ctx.user.id, ctx.token.id
        self.tokens.revoke(db, ctx.token)
        logger.info("User logged out: user_id=%s token_id=%s", user_id, token_id)


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get singleton auth service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService(
            config=AuthConfig.from_settings(get_settings()),
            mailer=get_mailer(),
        )
    return _auth_service
