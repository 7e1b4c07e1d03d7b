"""Shared helpers for service-layer queries."""
import math
from dataclasses import dataclass
from typing import Generic, TypeVar

from services.exceptions import InvalidRequestError

T = TypeVar("T")

MAX_PAGE_SIZE = 100
MAX_SEARCH_TERMS = 10


def escape_ilike(value: str) -> str:
    """
    Escape LIKE/ILIKE wildcard characters so user input matches literally.

    Use together with escape="\\" on the ilike() call; SQLite has no default
    escape character.
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def split_search_terms(query: str | None) -> list[str]:
    """Split a free-text query into distinct lower-cased keywords."""
    if not query:
        return []
    terms = list(dict.fromkeys(term.lower() for term in query.split() if term.strip()))
    return terms[:MAX_SEARCH_TERMS]


def count_pages(total: int, page_size: int) -> int:
    """ceil(total / page_size); zero items means zero pages."""
    return math.ceil(total / page_size) if total > 0 else 0


def validate_pagination(page: int, page_size: int) -> int:
    """
    Check 1-indexed page bounds and return the row offset.

    Raises:
        InvalidRequestError: If page < 1 or page_size is outside 1..100.
    """
    if page < 1:
        raise InvalidRequestError("page must be >= 1")
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise InvalidRequestError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
    return (page - 1) * page_size


@dataclass
class PageResult(Generic[T]):
    """One page of a query plus the totals needed to navigate the rest."""

    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return count_pages(self.total, self.page_size)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1
