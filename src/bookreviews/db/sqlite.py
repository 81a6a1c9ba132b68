"""SQLite database operations.

Handles database connection, session management, schema bootstrap and
CRUD operations for users and books.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

import structlog
from sqlalchemy import create_engine, event, func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..errors import ConflictError, NotFoundError, StorageError, ValidationError
from .models import Base, Book, User
from .schemas import BookCreate, BookQuery

logger = structlog.get_logger(__name__)

# Messages for UNIQUE violations, keyed by the column list SQLite reports
CONFLICT_MESSAGES = {
    "reviews.book_id, reviews.user_id": "User already reviewed this book",
    "users.username": "Username already exists",
}


def translate_integrity_error(exc: IntegrityError) -> Exception:
    """Map a storage constraint violation onto the domain error taxonomy."""
    detail = str(exc.orig) if exc.orig is not None else str(exc)

    if "UNIQUE constraint failed" in detail:
        columns = detail.split("UNIQUE constraint failed:", 1)[1].strip()
        return ConflictError(CONFLICT_MESSAGES.get(columns, "Conflict"))
    if "CHECK constraint failed" in detail:
        if "rating" in detail:
            return ValidationError("Rating must be an integer between 1 and 5")
        return ValidationError()
    if "NOT NULL constraint failed" in detail:
        column = detail.split("NOT NULL constraint failed:", 1)[1].strip()
        return ValidationError(f"{column.split('.')[-1]} is required")
    if "FOREIGN KEY constraint failed" in detail:
        return NotFoundError("Referenced record not found")

    logger.error("Unrecognised integrity error", error=detail)
    return StorageError()


class Database:
    """Database connection and operations manager."""

    def __init__(self, db_path: Optional[str] = None, timeout: float = 5.0):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses the
                     configured BOOKREVIEWS_DB_PATH.
            timeout: Seconds to wait on a locked database before failing.
        """
        if db_path is None:
            from ..config import get_config

            db_path = get_config().db_path

        self.db_path = Path(db_path)
        self._is_memory = str(db_path) == ":memory:"

        if not self._is_memory:
            self._ensure_directory()

        # For in-memory databases, use StaticPool to reuse the same connection
        # so all sessions share the same in-memory database
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False, "timeout": timeout},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False, "timeout": timeout},
            )
        event.listen(self.engine, "connect", _enable_foreign_keys)
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables that do not exist yet."""
        # Import review models to register them with Base
        from ..reviews.models import Review  # noqa: F401

        Base.metadata.create_all(self.engine)
        logger.debug("Schema ready", db_path=str(self.db_path))

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        from ..reviews.models import Review  # noqa: F401

        Base.metadata.drop_all(self.engine)

    def close(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager.

        Commits on success. Constraint violations are re-raised as domain
        errors; any other storage failure becomes a StorageError.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            raise translate_integrity_error(e) from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Storage operation failed", error=str(e), exc_info=True)
            raise StorageError() from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ========================================================================
    # User Operations
    # ========================================================================

    def create_user(
        self, username: str, password_hash: str, session: Optional[Session] = None
    ) -> User:
        """Create a new user record."""

        def _create(s: Session) -> User:
            user = User(username=username, password_hash=password_hash)
            s.add(user)
            s.flush()
            return user

        if session:
            return _create(session)
        else:
            with self.get_session() as s:
                user = _create(s)
                s.expunge(user)
                return user

    def get_user(self, user_id: int, session: Optional[Session] = None) -> Optional[User]:
        """Get a user by ID."""

        def _get(s: Session) -> Optional[User]:
            return s.get(User, user_id)

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                user = _get(s)
                if user:
                    s.expunge(user)
                return user

    def get_user_by_username(
        self, username: str, session: Optional[Session] = None
    ) -> Optional[User]:
        """Get a user by username."""

        def _get(s: Session) -> Optional[User]:
            stmt = select(User).where(User.username == username)
            return s.execute(stmt).scalar_one_or_none()

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                user = _get(s)
                if user:
                    s.expunge(user)
                return user

    # ========================================================================
    # Book Operations
    # ========================================================================

    def create_book(self, book: BookCreate, session: Optional[Session] = None) -> Book:
        """Create a new book record."""

        def _create(s: Session) -> Book:
            db_book = Book(title=book.title, author=book.author, genre=book.genre)
            s.add(db_book)
            s.flush()
            return db_book

        if session:
            return _create(session)
        else:
            with self.get_session() as s:
                db_book = _create(s)
                s.expunge(db_book)
                return db_book

    def get_book(self, book_id: int, session: Optional[Session] = None) -> Optional[Book]:
        """Get a book by ID."""

        def _get(s: Session) -> Optional[Book]:
            return s.get(Book, book_id)

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                db_book = _get(s)
                if db_book:
                    s.expunge(db_book)
                return db_book

    def list_books(self, query: BookQuery, session: Optional[Session] = None) -> list[Book]:
        """List books, optionally filtered by exact author and/or genre."""

        def _list(s: Session) -> list[Book]:
            stmt = select(Book)
            if query.author:
                stmt = stmt.where(Book.author == query.author)
            if query.genre:
                stmt = stmt.where(Book.genre == query.genre)
            stmt = stmt.order_by(Book.id).limit(query.limit).offset(query.offset)
            return list(s.execute(stmt).scalars().all())

        if session:
            return _list(session)
        else:
            with self.get_session() as s:
                books = _list(s)
                for db_book in books:
                    s.expunge(db_book)
                return books

    def search_books(self, term: str, session: Optional[Session] = None) -> list[Book]:
        """Search books by case-insensitive substring of title or author."""

        def _search(s: Session) -> list[Book]:
            escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            pattern = f"%{escaped}%"
            stmt = (
                select(Book)
                .where(
                    (func.lower(Book.title).like(pattern, escape="\\"))
                    | (func.lower(Book.author).like(pattern, escape="\\"))
                )
                .order_by(Book.id)
            )
            return list(s.execute(stmt).scalars().all())

        if session:
            return _search(session)
        else:
            with self.get_session() as s:
                books = _search(s)
                for db_book in books:
                    s.expunge(db_book)
                return books

    def count_books(self, session: Optional[Session] = None) -> int:
        """Count all books."""

        def _count(s: Session) -> int:
            return s.execute(select(func.count()).select_from(Book)).scalar() or 0

        if session:
            return _count(session)
        else:
            with self.get_session() as s:
                return _count(s)

    def health_check(self) -> dict:
        """Check connectivity and report table sizes."""
        from ..reviews.models import Review

        try:
            with self.get_session() as s:
                s.execute(text("SELECT 1"))
                return {
                    "status": "healthy",
                    "users": s.execute(select(func.count()).select_from(User)).scalar(),
                    "books": s.execute(select(func.count()).select_from(Book)).scalar(),
                    "reviews": s.execute(select(func.count()).select_from(Review)).scalar(),
                }
        except StorageError:
            return {"status": "unhealthy"}


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite leaves foreign keys unenforced unless asked per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Global database instance
_db: Optional[Database] = None


def get_db(db_path: Optional[str] = None) -> Database:
    """Get or create the global database instance.

    The schema is bootstrapped once, when the instance is first built.
    """
    global _db
    if _db is None:
        from ..config import get_config

        config = get_config()
        _db = Database(db_path or config.db_path, timeout=config.db_timeout)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Dispose of the global database instance. Used for testing and shutdown."""
    global _db
    if _db is not None:
        _db.close()
    _db = None
