"""Opaque bearer token service."""

import hashlib
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.errors import ExpiredToken, InvalidToken
from app.models.auth_token import AuthToken
from app.models.user import User

logger = logging.getLogger("passgate")

TOKEN_BYTES = 32


@dataclass
class AuthContext:
    """Authenticated request identity: the user and the token that proved it."""

    user: User
    token: AuthToken


def digest(plaintext: str) -> str:
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


def preview(plaintext: str) -> str:
    """Short, non-reusable form of a token for log lines."""
    return plaintext[:10] + "..."


class TokenService:
    """Handles bearer token creation, validation and revocation."""

    def __init__(
        self,
        ttl: timedelta | None = timedelta(hours=24),
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self.ttl = ttl
        self.clock = clock

    def issue(self, db: Session, user: User, name: str = "auth_token") -> str:
        """Create a token for the user and return its plaintext. Only the digest is stored."""
        plaintext = secrets.token_urlsafe(TOKEN_BYTES)
        now = self.clock()
        record = AuthToken(
            user_id=user.id,
            name=name,
            token_hash=digest(plaintext),
            created_at=now,
            expires_at=now + self.ttl if self.ttl is not None else None,
        )
        db.add(record)
        db.commit()
        return plaintext

    def find(self, db: Session, plaintext: str) -> AuthToken | None:
        return db.query(AuthToken).filter(AuthToken.token_hash == digest(plaintext)).first()

    def is_expired(self, token: AuthToken) -> bool:
        return token.expires_at is not None and token.expires_at <= self.clock()

    def validate(self, db: Session, plaintext: str) -> AuthContext:
        """Resolve a plaintext token to its owner. Raises InvalidToken or ExpiredToken."""
        token = self.find(db, plaintext)
        if token is None:
            raise InvalidToken()
        if self.is_expired(token):
            raise ExpiredToken(token.expires_at)

        token.last_used_at = self.clock()
        db.commit()
        return AuthContext(user=token.user, token=token)

    def revoke(self, db: Session, token: AuthToken) -> None:
        db.delete(token)
        db.commit()

    def revoke_all(self, db: Session, user: User, commit: bool = True) -> int:
        """Delete every token the user holds. Returns the number removed."""
        deleted = db.query(AuthToken).filter(AuthToken.user_id == user.id).delete(synchronize_session=False)
        if commit:
            db.commit()
        return deleted
