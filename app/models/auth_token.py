"""Bearer token model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.database import Base


class AuthToken(Base):
    """Opaque bearer token issued to a user. Only the SHA-256 digest is stored."""

    __tablename__ = "auth_token"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False, default="auth_token")
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    expires_at = Column(DateTime, nullable=True)  # NULL never expires
    last_used_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="tokens")
