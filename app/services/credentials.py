"""Credential store: user records and bcrypt password hashes."""

import logging

import bcrypt
from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import DuplicateEmail, ValidationFailed
from app.models.user import User

logger = logging.getLogger("passgate")

# bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72


def normalize_email(email: str) -> str:
    return email.strip().lower()


def hash_secret(secret: str) -> str:
    return bcrypt.hashpw(secret.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_secret(secret: str, hashed: str) -> bool:
    return bcrypt.checkpw(secret.encode("utf-8"), hashed.encode("utf-8"))


class CredentialStore:
    """Creates, looks up and updates users."""

    def __init__(self, password_min_length: int = 8) -> None:
        self.password_min_length = password_min_length

    def validate_password(self, password: str, field: str = "password") -> None:
        """Raise ValidationFailed if the password breaks the length policy."""
        if len(password) < self.password_min_length:
            raise ValidationFailed(
                errors={field: [f"The {field} field must be at least {self.password_min_length} characters."]}
            )
        if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValidationFailed(errors={field: [f"The {field} field must not exceed {BCRYPT_MAX_BYTES} bytes."]})

    def create(self, db: Session, first_name: str, last_name: str, email: str, password: str) -> User:
        """Register a new user. Raises DuplicateEmail or ValidationFailed."""
        errors: dict[str, list[str]] = {}
        first_name = first_name.strip()
        last_name = last_name.strip()
        if not first_name:
            errors["first_name"] = ["The first name field is required."]
        if not last_name:
            errors["last_name"] = ["The last name field is required."]
        email = normalize_email(email)
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            errors["email"] = ["The email field must be a valid email address."]
        if errors:
            raise ValidationFailed(errors=errors)
        self.validate_password(password)

        if self.find_by_email(db, email) is not None:
            raise DuplicateEmail()

        user = User(
            first_name=first_name,
            last_name=last_name,
            name=User.display_name(first_name, last_name),
            email=email,
            password_hash=hash_secret(password),
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email
            db.rollback()
            raise DuplicateEmail() from None
        db.refresh(user)

        logger.info("User created: id=%s", user.id)
        return user

    def find_by_email(self, db: Session, email: str) -> User | None:
        return db.query(User).filter(User.email == normalize_email(email)).first()

    def verify_password(self, user: User, password: str) -> bool:
        """Check a plaintext password against the user's stored hash."""
        try:
            return check_secret(password, user.password_hash)
        except ValueError:
            # Over-long or malformed input never matches
            return False

    def update_profile(
        self,
        db: Session,
        user: User,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        """Apply a partial name update and recompute the display name.

        ``None`` leaves a field alone. A supplied name that is blank once
        trimmed raises ValidationFailed and nothing is changed.
        """
        errors: dict[str, list[str]] = {}
        if first_name is not None:
            first_name = first_name.strip()
            if not first_name:
                errors["first_name"] = ["The first name field is required."]
        if last_name is not None:
            last_name = last_name.strip()
            if not last_name:
                errors["last_name"] = ["The last name field is required."]
        if errors:
            raise ValidationFailed(errors=errors)

        changed = False
        if first_name is not None:
            user.first_name = first_name
            changed = True
        if last_name is not None:
            user.last_name = last_name
            changed = True
        if changed:
            user.name = User.display_name(user.first_name, user.last_name)
            db.commit()
            db.refresh(user)
        return user

    def set_password(self, db: Session, user: User, password: str, commit: bool = True) -> None:
        """Replace the stored hash. Existing tokens are left alone.

        Pass ``commit=False`` to leave the change in the caller's transaction.
        """
        self.validate_password(password)
        user.password_hash = hash_secret(password)
        if commit:
            db.commit()
