"""Tests for CatalogManager."""

import pytest

from bookreviews.catalog import CatalogManager
from bookreviews.db.models import Book, User
from bookreviews.db.sqlite import Database
from bookreviews.errors import NotFoundError, ValidationError


class TestCreateBook:
    """Tests for adding books."""

    def test_create_book(self, catalog: CatalogManager):
        """Test adding a book with a genre."""
        book = catalog.create_book("Wings of Fire", "APJ Abdul Kalam", "Biography")

        assert book.id == 1
        assert book.genre == "Biography"

    @pytest.mark.parametrize(
        "title,author",
        [(None, "Author"), ("Title", None), ("", "Author"), ("Title", "   ")],
    )
    def test_title_and_author_required(self, catalog: CatalogManager, title, author):
        """Missing or blank title/author is rejected."""
        with pytest.raises(ValidationError, match="Title and author required"):
            catalog.create_book(title, author)

        assert catalog.list_books() == []


class TestListBooks:
    """Tests for listing books."""

    def test_default_page(self, catalog: CatalogManager, multiple_books: list[Book]):
        """Test listing every book in insertion order."""
        books = catalog.list_books()
        assert [b.id for b in books] == [b.id for b in multiple_books]

    def test_filters(self, catalog: CatalogManager, multiple_books: list[Book]):
        """Author and genre filters combine."""
        assert len(catalog.list_books(genre="Fiction")) == 2
        assert [b.title for b in catalog.list_books(author="Author A", genre="Fiction")] == [
            "Book One"
        ]

    def test_empty_filters_ignored(self, catalog: CatalogManager, multiple_books: list[Book]):
        """Blank filter values mean no filter."""
        assert len(catalog.list_books(author="", genre="")) == 4

    def test_limit_and_offset(self, catalog: CatalogManager, multiple_books: list[Book]):
        """Test paging through the catalogue."""
        assert [b.title for b in catalog.list_books(limit=1, offset=3)] == ["Another Book"]


class TestBookDetail:
    """Tests for book detail with rating."""

    def test_unreviewed_book(self, catalog: CatalogManager, book: Book):
        """A book with no reviews shows 0.0."""
        detail = catalog.get_book_detail(book.id)

        assert detail.title == "Wings of Fire"
        assert detail.average_rating == "0.0"
        assert detail.review_count == 0

    def test_reviewed_book(
        self, catalog: CatalogManager, book: Book, user_a: User, user_b: User
    ):
        """The average reflects all reviews."""
        catalog.reviews.create_review(book.id, user_a.id, 5)
        catalog.reviews.create_review(book.id, user_b.id, 3)

        detail = catalog.get_book_detail(book.id)

        assert detail.average_rating == "4.0"
        assert detail.review_count == 2

    def test_average_tie_rounds_up(self, catalog: CatalogManager, db: Database, book: Book):
        """An average of 3.25 displays as 3.3."""
        for i, rating in enumerate([3, 3, 3, 4]):
            user = db.create_user(f"reader{i}", "hash")
            catalog.reviews.create_review(book.id, user.id, rating)

        detail = catalog.get_book_detail(book.id)

        assert detail.average_rating == "3.3"
        assert detail.review_count == 4

    def test_missing_book(self, catalog: CatalogManager):
        """Unknown books are NotFound."""
        with pytest.raises(NotFoundError, match="Book not found"):
            catalog.get_book_detail(404)


class TestSearchBooks:
    """Tests for searching books."""

    def test_search_title(self, catalog: CatalogManager, multiple_books: list[Book]):
        """Test a case-insensitive title match."""
        assert [b.title for b in catalog.search_books("ANOTHER")] == ["Another Book"]

    def test_search_trims_query(self, catalog: CatalogManager, multiple_books: list[Book]):
        """Surrounding whitespace in the query is ignored."""
        assert len(catalog.search_books("  author b ")) == 1

    def test_no_match(self, catalog: CatalogManager, multiple_books: list[Book]):
        """Test that no match is an empty list."""
        assert catalog.search_books("zzz") == []

    @pytest.mark.parametrize("query", [None, "", "   "])
    def test_query_required(self, catalog: CatalogManager, query):
        """A blank query is rejected."""
        with pytest.raises(ValidationError, match="Search query required"):
            catalog.search_books(query)
