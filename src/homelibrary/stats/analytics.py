"""Library statistics and overdue lending aggregation."""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, select

from ..db.models import Book, LendingRecord
from ..db.schemas import BookStatus
from ..db.sqlite import Database
from ..results import Ok, Result
from ..timeutil import to_storage, utcnow
from .schemas import LibraryStats


class LibraryAnalytics:
    """Derives summary counts and overdue sets from current catalog state."""

    def __init__(self, db: Database):
        """Initialize analytics.

        Args:
            db: Database instance
        """
        self.db = db

    def get_stats(self) -> Result[LibraryStats]:
        """Count books by status.

        Returns:
            Ok with LibraryStats
        """
        with self.db.get_session() as session:
            rows = session.execute(
                select(Book.status, func.count()).group_by(Book.status)
            ).all()

        counts = {status: count for status, count in rows}
        return Ok(
            LibraryStats(
                total_books=sum(counts.values()),
                owned_books=counts.get(BookStatus.OWNED.value, 0),
                lent_books=counts.get(BookStatus.LENT.value, 0),
                wishlist_books=counts.get(BookStatus.WISHLIST.value, 0),
            )
        )

    def get_overdue_books(self, now: Optional[datetime] = None) -> Result[list[Book]]:
        """Get lent books whose open lending record is past its expected return.

        Args:
            now: Reference time (default: current UTC time)

        Returns:
            Ok with books ordered by expected return, most overdue first
        """
        cutoff = to_storage(now or utcnow())

        with self.db.get_session() as session:
            stmt = (
                select(Book)
                .join(LendingRecord, LendingRecord.book_id == Book.id)
                .where(
                    Book.status == BookStatus.LENT.value,
                    LendingRecord.actual_return.is_(None),
                    LendingRecord.expected_return < cutoff,
                )
                .order_by(LendingRecord.expected_return.asc(), Book.id)
            )
            books = list(session.execute(stmt).scalars().unique().all())
            for book in books:
                session.expunge(book)

        return Ok(books)
