"""Pydantic schemas for lending and returning books."""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from ..db.schemas import CamelModel


class LendRequest(CamelModel):
    """Schema for lending a book to someone."""

    borrower_name: str = Field(..., min_length=1, max_length=255)
    borrower_contact: str = Field(..., min_length=1, max_length=255)
    date_lent: datetime
    expected_return: datetime
    notes: Optional[str] = None

    @field_validator("borrower_name", "borrower_contact", mode="before")
    @classmethod
    def strip_text(cls, v):
        """Reject borrower details that are only whitespace."""
        if isinstance(v, str):
            v = v.strip()
        return v


class ReturnRequest(CamelModel):
    """Schema for returning a lent book."""

    actual_return: Optional[datetime] = None
    notes: Optional[str] = None
