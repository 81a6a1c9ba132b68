"""Pydantic schemas for catalog views."""

from ..db.schemas import BookResponse


class BookDetail(BookResponse):
    """A book with its aggregate rating.

    ``average_rating`` is formatted to one decimal place, e.g. ``"4.0"``.
    """

    average_rating: str
    review_count: int
