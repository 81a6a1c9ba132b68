"""Catalog manager for creating, listing and searching books."""

from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from ..db.models import Book
from ..db.schemas import BookCreate, BookQuery, BookResponse
from ..db.sqlite import Database, get_db
from ..errors import NotFoundError, ValidationError, from_pydantic
from ..reviews.manager import ReviewManager
from .schemas import BookDetail

logger = structlog.get_logger(__name__)

DEFAULT_BOOK_PAGE_SIZE = 10


class CatalogManager:
    """Manages the book catalogue."""

    def __init__(self, db: Optional[Database] = None, reviews: Optional[ReviewManager] = None):
        """Initialize catalog manager.

        Args:
            db: Database instance
            reviews: Review manager used for rating aggregates
        """
        self.db = db or get_db()
        self.reviews = reviews or ReviewManager(self.db)

    def create_book(self, title: Optional[str], author: Optional[str], genre: Optional[str] = None) -> Book:
        """Add a book to the catalogue.

        Raises:
            ValidationError: Title or author missing or blank
        """
        if not (title and str(title).strip()) or not (author and str(author).strip()):
            raise ValidationError("Title and author required")

        try:
            data = BookCreate(title=title, author=author, genre=genre)
        except PydanticValidationError as e:
            raise from_pydantic(e) from e

        book = self.db.create_book(data)
        logger.info("Book created", book_id=book.id, title=book.title)
        return book

    def list_books(
        self,
        limit: int = DEFAULT_BOOK_PAGE_SIZE,
        offset: int = 0,
        author: Optional[str] = None,
        genre: Optional[str] = None,
    ) -> list[Book]:
        """List books; author and genre are exact-match filters combined with AND."""
        query = BookQuery(author=author or None, genre=genre or None, limit=limit, offset=offset)
        return self.db.list_books(query)

    def get_book(self, book_id: int) -> Optional[Book]:
        """Get a book by ID."""
        return self.db.get_book(book_id)

    def get_book_detail(self, book_id: int) -> BookDetail:
        """Get a book together with its average rating.

        Raises:
            NotFoundError: Book does not exist
        """
        book = self.db.get_book(book_id)
        if book is None:
            raise NotFoundError("Book not found")

        summary = self.reviews.get_rating_summary(book_id)
        return BookDetail(
            **BookResponse.model_validate(book).model_dump(),
            average_rating=summary.display,
            review_count=summary.review_count,
        )

    def search_books(self, query: Optional[str]) -> list[Book]:
        """Case-insensitive substring search over title and author.

        Raises:
            ValidationError: Query missing or blank
        """
        if not query or not query.strip():
            raise ValidationError("Search query required")
        return self.db.search_books(query.strip())
