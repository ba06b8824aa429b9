"""Password reset OTP model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from app.database import Base


class PasswordResetOtp(Base):
    """Hashed one-time code for a password reset, keyed by email rather than user."""

    __tablename__ = "password_reset_otp"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, index=True)
    otp_hash = Column(String(256), nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
