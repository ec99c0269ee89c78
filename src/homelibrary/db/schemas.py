"""Pydantic schemas for books and lending records.

These schemas define the data shapes used for validation and API responses.
Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model accepting snake_case or camelCase and emitting camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class BookStatus(str, Enum):
    """Ownership / lending status of a book."""

    OWNED = "OWNED"
    LENT = "LENT"
    WISHLIST = "WISHLIST"


STATUS_FILTER_ALL = "all"


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    """Strip whitespace; empty strings become None."""
    if v is None:
        return None
    v = v.strip()
    return v if v else None


# ============================================================================
# Book Schemas
# ============================================================================


class BookBase(CamelModel):
    """Base book fields shared across create/update/response."""

    title: str = Field(..., min_length=1, max_length=255)
    author: str = Field(..., min_length=1, max_length=255)
    isbn: Optional[str] = Field(None, max_length=32)
    genre: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    cover_image: Optional[str] = None
    pdf_file: Optional[str] = None

    @field_validator("title", "author", mode="before")
    @classmethod
    def strip_required(cls, v):
        """Reject titles and authors that are only whitespace."""
        if isinstance(v, str):
            v = v.strip()
        return v

    @field_validator("isbn", "genre", "description", "cover_image", "pdf_file", mode="before")
    @classmethod
    def normalize_optional(cls, v):
        if isinstance(v, str):
            return _blank_to_none(v)
        return v


class BookCreate(BookBase):
    """Schema for creating a new book."""

    status: BookStatus = BookStatus.OWNED


class BookUpdate(CamelModel):
    """Schema for updating an existing book. All fields optional."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    author: Optional[str] = Field(None, min_length=1, max_length=255)
    isbn: Optional[str] = Field(None, max_length=32)
    genre: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    cover_image: Optional[str] = None
    pdf_file: Optional[str] = None
    status: Optional[BookStatus] = None

    @field_validator("title", "author", mode="before")
    @classmethod
    def strip_required(cls, v):
        if isinstance(v, str):
            v = v.strip()
        return v

    @field_validator("isbn", "genre", "description", "cover_image", "pdf_file", mode="before")
    @classmethod
    def normalize_optional(cls, v):
        if isinstance(v, str):
            return _blank_to_none(v)
        return v


# ============================================================================
# Response Schemas
# ============================================================================


class LendingRecordResponse(CamelModel):
    """Schema for a lending record attached to a book."""

    id: str
    book_id: str
    borrower_name: str
    borrower_contact: str
    date_lent: datetime
    expected_return: datetime
    actual_return: Optional[datetime] = None
    notes: Optional[str] = None
    is_overdue: bool = False
    created_at: datetime
    updated_at: datetime


class BookResponse(BookBase):
    """Schema for book responses (includes DB-generated fields)."""

    id: str
    status: BookStatus
    created_at: datetime
    updated_at: datetime
    lending_info: Optional[LendingRecordResponse] = None
