"""Pytest configuration and shared fixtures.

This module provides fixtures for testing the bookreviews service,
including temporary databases, configuration, managers, and sample
users and books.
"""

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest

from bookreviews.catalog import CatalogManager
from bookreviews.config import Config, reset_config
from bookreviews.db.models import Book, User
from bookreviews.db.schemas import BookCreate
from bookreviews.db.sqlite import Database, reset_db
from bookreviews.reviews import ReviewManager

TEST_SECRET = "test-secret-key"


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[Path, None, None]:
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)
    yield db_path
    # Cleanup
    if db_path.exists():
        db_path.unlink()


@pytest.fixture(scope="function")
def db(temp_db_path: Path) -> Generator[Database, None, None]:
    """Create a test database instance."""
    # Reset any global state
    reset_db()
    reset_config()

    # Set environment variable for test database
    os.environ["BOOKREVIEWS_DB_PATH"] = str(temp_db_path)

    database = Database(str(temp_db_path))
    database.create_tables()
    yield database

    # Cleanup
    database.close()
    reset_db()
    reset_config()
    if "BOOKREVIEWS_DB_PATH" in os.environ:
        del os.environ["BOOKREVIEWS_DB_PATH"]


@pytest.fixture
def test_config(temp_db_path: Path) -> Config:
    """Configuration pointing at the temporary database."""
    return Config(
        db_path=str(temp_db_path),
        db_timeout=5.0,
        secret_key=TEST_SECRET,
        token_ttl=3600,
        host="127.0.0.1",
        port=3000,
        debug=True,
        log_level="INFO",
        log_format="console",
        max_page_size=100,
        books_require_auth=False,
    )


# ============================================================================
# Manager Fixtures
# ============================================================================


@pytest.fixture
def review_manager(db: Database) -> ReviewManager:
    """Create a ReviewManager with the test database."""
    return ReviewManager(db)


@pytest.fixture
def catalog(db: Database, review_manager: ReviewManager) -> CatalogManager:
    """Create a CatalogManager with the test database."""
    return CatalogManager(db, reviews=review_manager)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def user_a(db: Database) -> User:
    """First sample reviewer."""
    return db.create_user("alice", "not-a-real-hash")


@pytest.fixture
def user_b(db: Database) -> User:
    """Second sample reviewer."""
    return db.create_user("bob", "not-a-real-hash")


@pytest.fixture
def book(db: Database) -> Book:
    """The sample book from the reference scenario."""
    return db.create_book(BookCreate(title="Wings of Fire", author="APJ Abdul Kalam"))


@pytest.fixture
def multiple_books(db: Database) -> list[Book]:
    """Create multiple books in the database."""
    books_data = [
        BookCreate(title="Book One", author="Author A", genre="Fiction"),
        BookCreate(title="Book Two", author="Author B", genre="Fiction"),
        BookCreate(title="Book Three", author="Author A", genre="History"),
        BookCreate(title="Another Book", author="Author C"),
    ]
    return [db.create_book(data) for data in books_data]
