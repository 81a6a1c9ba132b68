"""Pydantic schemas for book reviews."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .models import MAX_RATING, MIN_RATING

RATING_REQUIRED = "Rating is required"
RATING_RANGE = f"Rating must be an integer between {MIN_RATING} and {MAX_RATING}"


def coerce_rating(v):
    """Accept whole numbers (or their string form) within the rating range."""
    if v is None or (isinstance(v, str) and not v.strip()):
        raise ValueError(RATING_REQUIRED)
    if isinstance(v, bool):
        raise ValueError(RATING_RANGE)
    if isinstance(v, float):
        if not v.is_integer():
            raise ValueError(RATING_RANGE)
        v = int(v)
    elif isinstance(v, str):
        try:
            v = int(v.strip())
        except ValueError:
            raise ValueError(RATING_RANGE) from None
    elif not isinstance(v, int):
        raise ValueError(RATING_RANGE)

    if not MIN_RATING <= v <= MAX_RATING:
        raise ValueError(RATING_RANGE)
    return v


class ReviewCreate(BaseModel):
    """Schema for creating a review."""

    book_id: int
    user_id: int
    rating: int
    comment: Optional[str] = None

    @field_validator("rating", mode="before")
    @classmethod
    def validate_rating(cls, v):
        """Rating must be present and a whole number from 1 to 5."""
        return coerce_rating(v)


class ReviewUpdate(BaseModel):
    """Schema for updating a review.

    Only fields present in the payload are applied; a present comment of
    None clears the stored comment.
    """

    rating: Optional[int] = None
    comment: Optional[str] = None

    @field_validator("rating", mode="before")
    @classmethod
    def validate_rating(cls, v):
        """Same rules as creation; a rating can be changed but not removed."""
        return coerce_rating(v)


class ReviewResponse(BaseModel):
    """Schema for review responses."""

    id: int
    book_id: int
    user_id: int
    rating: int
    comment: Optional[str]
    created_at: str
    updated_at: Optional[str]

    model_config = {"from_attributes": True}


class ReviewListItem(ReviewResponse):
    """A review joined with its author's username and the book title."""

    username: str
    book_title: str = Field(..., serialization_alias="bookTitle")


class RatingSummary(BaseModel):
    """Aggregate rating of a book."""

    book_id: int
    average_rating: float = Field(..., ge=0)
    review_count: int = Field(..., ge=0)

    @property
    def display(self) -> str:
        """Average formatted to one decimal place, halves rounded up."""
        return str(Decimal(str(self.average_rating)).quantize(Decimal("0.1"), ROUND_HALF_UP))
