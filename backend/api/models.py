"""
SQLAlchemy models for users and their saved games.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from .database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)  # uuid
    name = Column(String(128), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)  # always stored lowercase
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    games = relationship("SavedGame", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)


class SavedGame(Base):
    __tablename__ = "games"
    __table_args__ = (UniqueConstraint("owner_id", "name", name="uq_games_owner_name"),)

    id = Column(String(36), primary_key=True)  # uuid
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(128), nullable=False)  # user-defined save name, unique per owner
    state = Column(Text, nullable=False)  # JSON string, opaque to the server
    last_modified = Column(DateTime, nullable=False, default=utcnow, index=True)

    owner = relationship("User", back_populates="games")
