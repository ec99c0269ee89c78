"""Database module for local SQLite storage."""

from .models import Book, LendingRecord
from .schemas import BookCreate, BookUpdate, BookResponse, BookStatus, LendingRecordResponse
from .sqlite import Database

__all__ = [
    "Book",
    "LendingRecord",
    "BookCreate",
    "BookUpdate",
    "BookResponse",
    "BookStatus",
    "LendingRecordResponse",
    "Database",
]
