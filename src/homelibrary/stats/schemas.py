"""Pydantic schemas for library statistics."""

from ..db.schemas import CamelModel


class LibraryStats(CamelModel):
    """Counts over the whole catalog, regardless of any filter."""

    total_books: int = 0
    owned_books: int = 0
    lent_books: int = 0
    wishlist_books: int = 0
