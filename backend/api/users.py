"""
Credential store: user lookup and creation, plus bcrypt password hashing.
Bcrypt accepts at most 72 bytes; we truncate manually (password.encode("utf-8")[:72]) before hashing.
We use bcrypt directly so the truncated bytes are passed through with no extra encoding.
"""

import logging
import uuid

import bcrypt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import DuplicateEmail, InternalError, constraint_kind
from .models import User

logger = logging.getLogger(__name__)

BCRYPT_MAX_BYTES = 72


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _truncate_password(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 10) -> str:
    """Salted bcrypt hash; a fresh salt is generated on every call."""
    pwd_bytes = _truncate_password(password)
    return bcrypt.hashpw(pwd_bytes, bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(plain: str, hashed: str) -> bool:
    pwd_bytes = _truncate_password(plain)
    try:
        return bcrypt.checkpw(pwd_bytes, hashed.encode("ascii"))
    except ValueError:
        # Stored hash is not a bcrypt hash
        return False


class CredentialStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == normalize_email(email)).first()

    def get(self, user_id: str) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def _email_taken(self, email: str) -> bool:
        return self.db.query(User.id).filter(User.email == email).first() is not None

    def create(self, name: str, email: str, password_hash: str) -> User:
        """Insert a user. Raises DuplicateEmail if the normalized email is taken, even under a concurrent insert."""
        email = normalize_email(email)
        if self._email_taken(email):
            raise DuplicateEmail()
        user = User(id=str(uuid.uuid4()), name=name, email=email, password_hash=password_hash)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if constraint_kind(e) == "unique":
                raise DuplicateEmail()
            logger.exception("User insert failed")
            raise InternalError()
        self.db.refresh(user)
        return user

    def delete_by_email(self, email: str) -> dict | None:
        """Delete a user and, through the FK cascade, all of their saved games. Returns the deleted profile or None."""
        user = self.find_by_email(email)
        if user is None:
            return None
        profile = public_profile(user)
        self.db.delete(user)
        self.db.commit()
        return profile


def public_profile(user: User) -> dict:
    """User fields safe to return to clients (never the password hash)."""
    return {"id": user.id, "name": user.name, "email": user.email}
