"""SQLAlchemy models for book reviews.

Tables:
- reviews: One rating (and optional comment) per user per book
"""

from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..db.models import Base, Book, utc_now

MIN_RATING = 1
MAX_RATING = 5


class Review(Base):
    """Review model - a user's rating of a book."""

    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("book_id", "user_id", name="uq_reviews_book_user"),
        CheckConstraint(
            f"rating >= {MIN_RATING} AND rating <= {MAX_RATING}",
            name="ck_reviews_rating_range",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    book_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("books.id"), nullable=False, index=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )

    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text)

    # Timestamps; updated_at stays NULL until the first edit
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now)
    updated_at: Mapped[Optional[str]] = mapped_column(String(32))

    # Relationship
    book: Mapped["Book"] = relationship("Book")

    def __repr__(self) -> str:
        return (
            f"<Review(id={self.id}, book_id={self.book_id}, "
            f"user_id={self.user_id}, rating={self.rating})>"
        )
