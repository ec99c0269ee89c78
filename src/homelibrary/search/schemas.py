"""Pydantic schemas for filtered, paginated book listing."""

import math
from typing import Optional, Union

from pydantic import Field, field_validator

from ..db.schemas import STATUS_FILTER_ALL, BookResponse, BookStatus, CamelModel

MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 10


class BookQuery(CamelModel):
    """Filter and pagination criteria for listing books.

    ``status`` and ``genre`` accept the sentinel ``"all"`` meaning no
    restriction on that field.
    """

    search: Optional[str] = None
    status: Optional[Union[BookStatus, str]] = None
    genre: Optional[str] = None
    page: int = Field(1, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    @field_validator("search", "genre", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v):
        """Accept a BookStatus value (any case) or the sentinel "all"."""
        if v is None or isinstance(v, BookStatus):
            return v
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return None
            if v.lower() == STATUS_FILTER_ALL:
                return STATUS_FILTER_ALL
            try:
                return BookStatus(v.upper())
            except ValueError:
                allowed = ", ".join([s.value for s in BookStatus] + [STATUS_FILTER_ALL])
                raise ValueError(f"status must be one of: {allowed}")
        raise ValueError("status must be a string")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def status_filter(self) -> Optional[BookStatus]:
        """The status restriction, or None when listing every status."""
        if isinstance(self.status, BookStatus):
            return self.status
        return None

    @property
    def genre_filter(self) -> Optional[str]:
        """The genre restriction, or None when listing every genre."""
        if self.genre is None or self.genre.lower() == STATUS_FILTER_ALL:
            return None
        return self.genre


class BookPage(CamelModel):
    """One page of a book listing."""

    items: list[BookResponse]
    total: int
    page: int
    limit: int
    total_pages: int

    @staticmethod
    def count_pages(total: int, limit: int) -> int:
        return math.ceil(total / limit) if total else 0
