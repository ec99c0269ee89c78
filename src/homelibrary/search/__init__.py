"""Filtered, paginated book listing."""

from .manager import SearchManager
from .schemas import BookPage, BookQuery

__all__ = ["SearchManager", "BookPage", "BookQuery"]
