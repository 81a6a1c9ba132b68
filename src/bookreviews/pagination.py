"""Page/limit parsing shared by book and review listings."""

from dataclasses import dataclass
from typing import Any, Optional

# Largest value SQLite accepts for LIMIT and OFFSET
MAX_SQL_INT = 2**63 - 1


@dataclass(frozen=True)
class Page:
    """A resolved page request."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _positive_int(value: Any) -> Optional[int]:
    """Parse a positive integer, returning None for anything else."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return number if 1 <= number <= MAX_SQL_INT else None


def parse_page(
    page: Any = None,
    limit: Any = None,
    default_limit: int = 10,
    max_limit: Optional[int] = None,
) -> Page:
    """Resolve raw page/limit values.

    Absent, non-numeric or non-positive values fall back to page 1 and
    ``default_limit``. ``limit`` is capped at ``max_limit`` when given, and a
    page whose offset would not fit in an SQL integer is treated as page 1.

    Example:
        >>> parse_page("3", "abc", default_limit=5).offset
        10
    """
    resolved_page = _positive_int(page) or 1
    resolved_limit = _positive_int(limit) or default_limit
    if max_limit is not None:
        resolved_limit = min(resolved_limit, max_limit)
    if (resolved_page - 1) * resolved_limit > MAX_SQL_INT:
        resolved_page = 1
    return Page(page=resolved_page, limit=resolved_limit)
