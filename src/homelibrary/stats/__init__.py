"""Library statistics and overdue tracking."""

from .analytics import LibraryAnalytics
from .schemas import LibraryStats

__all__ = ["LibraryAnalytics", "LibraryStats"]
