"""Domain exceptions shared by the catalog, review and identity layers.

Each error carries the HTTP status the web layer answers with, so the
mapping lives in one place.
"""

from typing import Optional


class BookReviewsError(Exception):
    """Base exception for all service errors."""

    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BookReviewsError):
    """Missing or malformed input."""

    status_code = 400
    default_message = "Invalid input"


class AuthError(BookReviewsError):
    """Missing, tampered or expired credentials."""

    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(BookReviewsError):
    """Caller is authenticated but does not own the target entity."""

    status_code = 403
    default_message = "Forbidden"


class NotFoundError(BookReviewsError):
    """Referenced entity does not exist."""

    status_code = 404
    default_message = "Not found"


class ConflictError(BookReviewsError):
    """Uniqueness violation, e.g. a second review of the same book."""

    status_code = 409
    default_message = "Conflict"


class StorageError(BookReviewsError):
    """Unexpected persistence failure. The message never carries driver detail."""

    status_code = 500
    default_message = "Internal Server Error"


def from_pydantic(exc) -> ValidationError:
    """Build a ValidationError from the first problem pydantic reported."""
    problems = exc.errors()
    if not problems:
        return ValidationError()

    first = problems[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    if first.get("type") == "value_error" and "error" in first.get("ctx", {}):
        return ValidationError(str(first["ctx"]["error"]))
    if first.get("type") == "missing":
        return ValidationError(f"{field[:1].upper()}{field[1:]} is required")
    if field:
        return ValidationError(f"{field}: {first.get('msg', 'invalid value')}")
    return ValidationError(first.get("msg"))
