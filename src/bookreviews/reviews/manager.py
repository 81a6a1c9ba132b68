"""Review manager for book review operations."""

from typing import Any, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from ..db.models import Book, User, utc_now
from ..db.sqlite import Database, get_db
from ..errors import ConflictError, ForbiddenError, NotFoundError, from_pydantic
from .models import Review
from .schemas import RatingSummary, ReviewCreate, ReviewListItem, ReviewUpdate

logger = structlog.get_logger(__name__)

DEFAULT_REVIEW_PAGE_SIZE = 5


class ReviewManager:
    """Manages book review operations.

    Invariants: one review per (book, user) pair, ratings within 1-5, and
    only the author of a review may change or delete it.
    """

    def __init__(self, db: Optional[Database] = None):
        """Initialize review manager.

        Args:
            db: Database instance
        """
        self.db = db or get_db()

    # -------------------------------------------------------------------------
    # Review CRUD
    # -------------------------------------------------------------------------

    def create_review(
        self,
        book_id: int,
        user_id: int,
        rating: Any,
        comment: Optional[str] = None,
    ) -> Review:
        """Create a new review.

        Args:
            book_id: Book being reviewed
            user_id: Authenticated author
            rating: Whole number from 1 to 5
            comment: Optional free text

        Returns:
            Created review

        Raises:
            ValidationError: Rating missing or out of range
            NotFoundError: Book does not exist
            ConflictError: The user already reviewed this book
        """
        try:
            data = ReviewCreate(book_id=book_id, user_id=user_id, rating=rating, comment=comment)
        except PydanticValidationError as e:
            raise from_pydantic(e) from e

        try:
            with self.db.get_session() as session:
                if session.get(Book, data.book_id) is None:
                    raise NotFoundError("Book not found")

                existing = session.execute(
                    select(Review.id).where(
                        Review.book_id == data.book_id,
                        Review.user_id == data.user_id,
                    )
                ).scalar_one_or_none()
                if existing is not None:
                    raise ConflictError("User already reviewed this book")

                review = Review(
                    book_id=data.book_id,
                    user_id=data.user_id,
                    rating=data.rating,
                    comment=data.comment,
                )
                session.add(review)
                # A concurrent insert for the same pair fails here on the
                # unique constraint and surfaces as ConflictError.
                session.flush()
                session.expunge(review)
        except ConflictError:
            logger.info("Duplicate review rejected", book_id=data.book_id, user_id=data.user_id)
            raise

        logger.info(
            "Review created",
            review_id=review.id,
            book_id=review.book_id,
            user_id=review.user_id,
            rating=review.rating,
        )
        return review

    def get_review(self, review_id: int) -> Optional[Review]:
        """Get a review by ID.

        Args:
            review_id: Review ID

        Returns:
            Review or None
        """
        with self.db.get_session() as session:
            review = session.get(Review, review_id)
            if review:
                session.expunge(review)
            return review

    def list_reviews_for_book(
        self,
        book_id: int,
        limit: int = DEFAULT_REVIEW_PAGE_SIZE,
        offset: int = 0,
    ) -> list[ReviewListItem]:
        """List a book's reviews in insertion order.

        Args:
            book_id: Book ID
            limit: Maximum number of reviews
            offset: Number of reviews to skip

        Returns:
            Reviews joined with author username and book title
        """
        with self.db.get_session() as session:
            stmt = (
                select(Review, User.username, Book.title)
                .join(User, Review.user_id == User.id)
                .join(Book, Review.book_id == Book.id)
                .where(Review.book_id == book_id)
                .order_by(Review.id.asc())
                .limit(limit)
                .offset(offset)
            )
            return [
                ReviewListItem(
                    id=review.id,
                    book_id=review.book_id,
                    user_id=review.user_id,
                    rating=review.rating,
                    comment=review.comment,
                    created_at=review.created_at,
                    updated_at=review.updated_at,
                    username=username,
                    book_title=title,
                )
                for review, username, title in session.execute(stmt).all()
            ]

    def list_reviews_for_user(self, user_id: int) -> list[Review]:
        """List every review written by a user, oldest first, with its book loaded."""
        with self.db.get_session() as session:
            stmt = (
                select(Review)
                .options(selectinload(Review.book))
                .where(Review.user_id == user_id)
                .order_by(Review.id)
            )
            reviews = session.execute(stmt).scalars().all()
            for review in reviews:
                session.expunge(review)
            return list(reviews)

    def update_review(
        self,
        review_id: int,
        user_id: int,
        data: Union[ReviewUpdate, dict],
    ) -> Review:
        """Update a review owned by the caller.

        Args:
            review_id: Review ID
            user_id: Authenticated caller
            data: Fields to replace; absent fields are left unchanged

        Returns:
            Updated review

        Raises:
            NotFoundError: Review does not exist
            ForbiddenError: Caller is not the author
            ValidationError: Rating present but invalid
        """
        with self.db.get_session() as session:
            review = self._get_owned(session, review_id, user_id, action="update")

            if not isinstance(data, ReviewUpdate):
                try:
                    data = ReviewUpdate.model_validate(data)
                except PydanticValidationError as e:
                    raise from_pydantic(e) from e

            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(review, field, value)
            review.updated_at = utc_now()

            session.flush()
            session.expunge(review)

        logger.info("Review updated", review_id=review_id, user_id=user_id)
        return review

    def delete_review(self, review_id: int, user_id: int) -> None:
        """Permanently delete a review owned by the caller.

        Raises:
            NotFoundError: Review does not exist
            ForbiddenError: Caller is not the author
        """
        with self.db.get_session() as session:
            review = self._get_owned(session, review_id, user_id, action="delete")
            session.delete(review)

        logger.info("Review deleted", review_id=review_id, user_id=user_id)

    def _get_owned(self, session, review_id: int, user_id: int, action: str) -> Review:
        """Load a review and check the caller is its author."""
        review = session.get(Review, review_id)
        if review is None:
            raise NotFoundError("Review not found")
        if review.user_id != user_id:
            logger.warning(
                "Review ownership check failed",
                review_id=review_id,
                owner_id=review.user_id,
                caller_id=user_id,
                action=action,
            )
            raise ForbiddenError(f"Unauthorized to {action} this review")
        return review

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    def average_rating(self, book_id: int) -> float:
        """Mean rating of a book; 0.0 when it has no reviews."""
        with self.db.get_session() as session:
            avg = session.execute(
                select(func.avg(Review.rating)).where(Review.book_id == book_id)
            ).scalar()
        return float(avg) if avg is not None else 0.0

    def get_rating_summary(self, book_id: int) -> RatingSummary:
        """Average rating and review count for a book."""
        with self.db.get_session() as session:
            avg, count = session.execute(
                select(func.avg(Review.rating), func.count(Review.id)).where(
                    Review.book_id == book_id
                )
            ).one()
        return RatingSummary(
            book_id=book_id,
            average_rating=float(avg) if avg is not None else 0.0,
            review_count=count or 0,
        )
