"""Book reviews and ratings module."""

from .manager import ReviewManager
from .models import Review
from .schemas import (
    RatingSummary,
    ReviewCreate,
    ReviewListItem,
    ReviewResponse,
    ReviewUpdate,
)

__all__ = [
    "ReviewManager",
    "Review",
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewResponse",
    "ReviewListItem",
    "RatingSummary",
]
