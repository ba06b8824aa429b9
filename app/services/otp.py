"""OTP store for password reset codes.

Codes are bcrypt-hashed at rest and live for a short window. Issuing a new
code for an email deletes every earlier one, so at most one request is live
per address (last writer wins under concurrent requests).
"""

import logging
import secrets
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.models.password_reset_otp import PasswordResetOtp
from app.services.credentials import check_secret, hash_secret, normalize_email

logger = logging.getLogger("passgate")


class OtpStore:
    """Issues, verifies and expires password reset OTPs."""

    def __init__(
        self,
        ttl: timedelta = timedelta(minutes=10),
        length: int = 6,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self.ttl = ttl
        self.length = length
        self.clock = clock

    def generate_code(self) -> str:
        """Uniformly random numeric code, zero-padded to ``length`` digits."""
        return str(secrets.randbelow(10**self.length)).zfill(self.length)

    def issue(self, db: Session, email: str) -> tuple[str, datetime]:
        """Replace any outstanding codes for the email with a fresh one.

        Returns the plaintext code and its expiry. Only the hash is stored.
        """
        email = normalize_email(email)
        code = self.generate_code()
        expires_at = self.clock() + self.ttl

        db.query(PasswordResetOtp).filter(PasswordResetOtp.email == email).delete(synchronize_session=False)
        db.add(PasswordResetOtp(email=email, otp_hash=hash_secret(code), expires_at=expires_at))
        db.commit()

        return code, expires_at

    def find_valid(self, db: Session, email: str) -> list[PasswordResetOtp]:
        return (
            db.query(PasswordResetOtp)
            .filter(PasswordResetOtp.email == normalize_email(email), PasswordResetOtp.expires_at > self.clock())
            .order_by(PasswordResetOtp.created_at.desc())
            .all()
        )

    def has_valid(self, db: Session, email: str) -> bool:
        return (
            db.query(PasswordResetOtp.id)
            .filter(PasswordResetOtp.email == normalize_email(email), PasswordResetOtp.expires_at > self.clock())
            .first()
            is not None
        )

    def verify(self, db: Session, email: str, candidate: str) -> bool:
        """True if the candidate matches any unexpired code for the email."""
        return self.matches(self.find_valid(db, email), candidate)

    def matches(self, records: list[PasswordResetOtp], candidate: str) -> bool:
        # More than one live record only happens after a reissue race; first match wins.
        for record in records:
            if check_secret(candidate, record.otp_hash):
                return True
        return False

    def consume(self, db: Session, email: str, commit: bool = True) -> None:
        db.query(PasswordResetOtp).filter(PasswordResetOtp.email == normalize_email(email)).delete(
            synchronize_session=False
        )
        if commit:
            db.commit()

    def sweep_expired(self, db: Session, email: str) -> int:
        """Delete expired codes for the email. Returns how many were removed."""
        deleted = (
            db.query(PasswordResetOtp)
            .filter(PasswordResetOtp.email == normalize_email(email), PasswordResetOtp.expires_at <= self.clock())
            .delete(synchronize_session=False)
        )
        db.commit()
        if deleted:
            logger.info("Swept %d expired reset code(s)", deleted)
        return deleted
