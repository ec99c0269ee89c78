"""SQLAlchemy ORM models for the library database.

Tables:
- books: Catalog entries (owned, lent or wishlisted)
- lending_records: Lending history, one open record per lent book
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from ..timeutil import from_storage, now_storage, utcnow
from .schemas import BookStatus


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


class Book(Base):
    """Book model - a catalog entry and the owner of its lending history."""

    __tablename__ = "books"

    # Primary key
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    # Core fields
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    isbn: Mapped[Optional[str]] = mapped_column(String(32), index=True)
    genre: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(
        String(20), default=BookStatus.OWNED.value, nullable=False, index=True
    )

    # File references (paths relative to the static uploads root)
    cover_image: Mapped[Optional[str]] = mapped_column(Text)
    pdf_file: Mapped[Optional[str]] = mapped_column(Text)

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=now_storage, index=True)
    updated_at: Mapped[str] = mapped_column(
        String(32), default=now_storage, onupdate=now_storage
    )

    # Relationships
    lending_records: Mapped[list["LendingRecord"]] = relationship(
        "LendingRecord",
        back_populates="book",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="LendingRecord.date_lent",
    )

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title}', status={self.status})>"

    @property
    def open_record(self) -> Optional["LendingRecord"]:
        """The unreturned lending record, if the book is out on loan."""
        for record in reversed(self.lending_records):
            if record.actual_return is None:
                return record
        return None

    @property
    def lending_info(self) -> Optional["LendingRecord"]:
        """Current lending info: the open record, else the latest returned one."""
        open_record = self.open_record
        if open_record is not None:
            return open_record
        if self.lending_records:
            return self.lending_records[-1]
        return None


class LendingRecord(Base):
    """Lending record model - one loan of a book to a borrower."""

    __tablename__ = "lending_records"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    book_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Borrower
    borrower_name: Mapped[str] = mapped_column(String(255), nullable=False)
    borrower_contact: Mapped[str] = mapped_column(String(255), nullable=False)

    # Dates (UTC ISO timestamps)
    date_lent: Mapped[str] = mapped_column(String(32), nullable=False)
    expected_return: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    actual_return: Mapped[Optional[str]] = mapped_column(String(32), index=True)

    notes: Mapped[Optional[str]] = mapped_column(Text)

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=now_storage)
    updated_at: Mapped[str] = mapped_column(
        String(32), default=now_storage, onupdate=now_storage
    )

    # Relationships
    book: Mapped["Book"] = relationship("Book", back_populates="lending_records")

    def __repr__(self) -> str:
        return (
            f"<LendingRecord(id={self.id}, book_id={self.book_id}, "
            f"borrower='{self.borrower_name}', open={self.is_open})>"
        )

    @property
    def is_open(self) -> bool:
        """Whether the book has not come back yet."""
        return self.actual_return is None

    def is_overdue_at(self, now: datetime) -> bool:
        """Check if the loan is overdue at the given moment."""
        if not self.is_open:
            return False
        return from_storage(self.expected_return) < now

    @property
    def is_overdue(self) -> bool:
        """Check if the loan is overdue now."""
        return self.is_overdue_at(utcnow())
