"""Book catalogue module."""

from .manager import CatalogManager
from .schemas import BookDetail

__all__ = ["CatalogManager", "BookDetail"]
