"""Database module for SQLite storage."""

from .models import Book, User
from .schemas import BookCreate, BookQuery, BookResponse, UserCreate, UserResponse
from .sqlite import Database, get_db, reset_db

__all__ = [
    "Book",
    "User",
    "BookCreate",
    "BookQuery",
    "BookResponse",
    "UserCreate",
    "UserResponse",
    "Database",
    "get_db",
    "reset_db",
]
