"""Tests for Pydantic schemas."""

import pytest
from pydantic import ValidationError

from bookreviews.db.schemas import BookCreate, BookQuery, UserCreate
from bookreviews.errors import from_pydantic
from bookreviews.reviews.schemas import (
    RatingSummary,
    ReviewCreate,
    ReviewListItem,
    ReviewUpdate,
)


class TestBookCreate:
    """Tests for BookCreate schema."""

    def test_create_minimal_book(self):
        """Test creating a book with only required fields."""
        book = BookCreate(title="Test Book", author="Test Author")
        assert book.title == "Test Book"
        assert book.author == "Test Author"
        assert book.genre is None

    def test_whitespace_is_stripped(self):
        """Surrounding whitespace is removed from title and author."""
        book = BookCreate(title="  Dune ", author=" Frank Herbert ")
        assert book.title == "Dune"
        assert book.author == "Frank Herbert"

    @pytest.mark.parametrize("title", ["", "   "])
    def test_empty_title_rejected(self, title):
        """Test that empty title is rejected."""
        with pytest.raises(ValidationError):
            BookCreate(title=title, author="Test Author")

    def test_missing_author_message(self):
        """A missing author converts to a readable domain error."""
        with pytest.raises(ValidationError) as exc_info:
            BookCreate(title="Test Book")

        assert from_pydantic(exc_info.value).message == "Author is required"

    def test_blank_genre_is_none(self):
        """Test that a blank genre is dropped."""
        assert BookCreate(title="T", author="A", genre="  ").genre is None


class TestBookQuery:
    """Tests for BookQuery schema."""

    def test_defaults(self):
        """Test default paging values."""
        query = BookQuery()
        assert query.limit == 10
        assert query.offset == 0

    def test_limit_must_be_positive(self):
        """Test that a zero limit is rejected."""
        with pytest.raises(ValidationError):
            BookQuery(limit=0)


class TestUserCreate:
    """Tests for UserCreate schema."""

    def test_username_stripped(self):
        """Test that usernames are trimmed."""
        assert UserCreate(username=" alice ", password="pw").username == "alice"

    def test_empty_password_rejected(self):
        """Test that an empty password is rejected."""
        with pytest.raises(ValidationError):
            UserCreate(username="alice", password="")


class TestReviewCreate:
    """Tests for ReviewCreate schema."""

    @pytest.mark.parametrize("rating", [1, 2, 3, 4, 5, "4", 3.0])
    def test_valid_ratings(self, rating):
        """Whole numbers from 1 to 5 are accepted."""
        review = ReviewCreate(book_id=1, user_id=1, rating=rating)
        assert review.rating == int(rating)

    @pytest.mark.parametrize("rating", [0, 6, -1, 4.5, True, "abc", [3]])
    def test_invalid_ratings(self, rating):
        """Out-of-range or non-integer ratings are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            ReviewCreate(book_id=1, user_id=1, rating=rating)

        assert from_pydantic(exc_info.value).message == (
            "Rating must be an integer between 1 and 5"
        )

    @pytest.mark.parametrize("rating", [None, ""])
    def test_missing_rating(self, rating):
        """An absent rating has its own message."""
        with pytest.raises(ValidationError) as exc_info:
            ReviewCreate(book_id=1, user_id=1, rating=rating)

        assert from_pydantic(exc_info.value).message == "Rating is required"

    def test_comment_optional(self):
        """Test that comment defaults to None."""
        assert ReviewCreate(book_id=1, user_id=1, rating=3).comment is None


class TestReviewUpdate:
    """Tests for ReviewUpdate schema."""

    def test_empty_update_sets_nothing(self):
        """Absent fields are not part of the update."""
        assert ReviewUpdate().model_dump(exclude_unset=True) == {}

    def test_explicit_null_comment_is_kept(self):
        """A null comment is an explicit clear."""
        update = ReviewUpdate.model_validate({"comment": None})
        assert update.model_dump(exclude_unset=True) == {"comment": None}

    def test_null_rating_rejected(self):
        """A rating can be changed but not removed."""
        with pytest.raises(ValidationError):
            ReviewUpdate.model_validate({"rating": None})

    def test_out_of_range_rating_rejected(self):
        """Update uses the same rating rules as creation."""
        with pytest.raises(ValidationError):
            ReviewUpdate(rating=6)


class TestResponseShapes:
    """Tests for response schemas."""

    def test_list_item_book_title_alias(self):
        """The book title serializes as bookTitle."""
        item = ReviewListItem(
            id=1,
            book_id=1,
            user_id=1,
            rating=5,
            comment=None,
            created_at="2024-01-01T00:00:00+00:00",
            updated_at=None,
            username="alice",
            book_title="Wings of Fire",
        )

        dumped = item.model_dump(by_alias=True)
        assert dumped["bookTitle"] == "Wings of Fire"
        assert "book_title" not in dumped

    def test_rating_summary_display(self):
        """Averages display with one decimal place."""
        summary = RatingSummary(book_id=1, average_rating=3.5, review_count=2)
        assert summary.display == "3.5"
        assert RatingSummary(book_id=1, average_rating=0.0, review_count=0).display == "0.0"

    @pytest.mark.parametrize(
        "average,expected", [(3.25, "3.3"), (2.75, "2.8"), (4.0, "4.0"), (10 / 3, "3.3")]
    )
    def test_rating_summary_rounds_half_up(self, average, expected):
        """Ties at the second decimal round away from zero."""
        assert RatingSummary(book_id=1, average_rating=average, review_count=4).display == expected
