"""SQLAlchemy ORM models for the SQLite database.

Tables:
- users: Accounts that can author reviews
- books: Catalogue entries
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> str:
    """Current UTC time as an ISO string, the storage format for timestamps."""
    return datetime.now(timezone.utc).isoformat()


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class User(Base):
    """User model - account identity and credential hash."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"


class Book(Base):
    """Book model - immutable catalogue entry."""

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    genre: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', author='{self.author}')>"
