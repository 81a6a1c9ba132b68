"""Pydantic schemas for users and books.

These schemas validate input at the service boundary and shape the
records handed back to the API and CLI.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


def _strip_required(v: Optional[str]) -> Optional[str]:
    if isinstance(v, str):
        v = v.strip()
    return v


# ============================================================================
# Users
# ============================================================================


class UserCreate(BaseModel):
    """Schema for account signup."""

    username: str = Field(..., min_length=1, max_length=150)
    password: str = Field(..., min_length=1)

    @field_validator("username", mode="before")
    @classmethod
    def strip_username(cls, v):
        """Usernames are stored without surrounding whitespace."""
        return _strip_required(v)


class UserResponse(BaseModel):
    """Public view of an account."""

    id: int
    username: str

    model_config = {"from_attributes": True}


# ============================================================================
# Books
# ============================================================================


class BookCreate(BaseModel):
    """Schema for creating a book."""

    title: str = Field(..., min_length=1, max_length=500, description="Book title")
    author: str = Field(..., min_length=1, max_length=500, description="Primary author")
    genre: Optional[str] = Field(None, max_length=100)

    @field_validator("title", "author", mode="before")
    @classmethod
    def strip_required(cls, v):
        """Whitespace-only titles and authors count as missing."""
        return _strip_required(v)

    @field_validator("genre", mode="before")
    @classmethod
    def empty_genre_is_none(cls, v):
        """Treat a blank genre as absent."""
        v = _strip_required(v)
        return v or None


class BookResponse(BaseModel):
    """Schema for book responses."""

    id: int
    title: str
    author: str
    genre: Optional[str]
    created_at: str

    model_config = {"from_attributes": True}


class BookQuery(BaseModel):
    """Filters and paging for book listings."""

    author: Optional[str] = None
    genre: Optional[str] = None
    limit: int = Field(10, ge=1)
    offset: int = Field(0, ge=0)
