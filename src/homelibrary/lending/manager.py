"""Lending manager for the book lending lifecycle.

States and transitions:

    OWNED ----lend----> LENT
    LENT  ---return---> OWNED
    WISHLIST --lend---> LENT   (only when wishlist lending is allowed)
    WISHLIST --edit---> OWNED  (through the catalog, not here)

Both transitions are a single conditional UPDATE on the book row plus the
matching lending record write, committed together. The status precondition
is evaluated by the UPDATE itself, so two racing lend calls cannot both win.
"""

import logging
from typing import Optional

from sqlalchemy import select, update

from ..db.models import Book, LendingRecord
from ..db.schemas import BookStatus
from ..db.sqlite import Database
from ..results import Ok, Result, conflict, invalid_range, not_found
from ..timeutil import now_storage, to_storage, to_utc, utcnow
from .schemas import LendRequest, ReturnRequest

logger = logging.getLogger(__name__)


class LendingManager:
    """Manages lending and returning books."""

    def __init__(self, db: Database, allow_wishlist_lending: bool = True):
        """Initialize lending manager.

        Args:
            db: Database instance
            allow_wishlist_lending: Whether WISHLIST books may be lent directly
        """
        self.db = db
        self.allow_wishlist_lending = allow_wishlist_lending

    def _lendable_block(self) -> list[str]:
        """Statuses from which a book may not be lent."""
        blocked = [BookStatus.LENT.value]
        if not self.allow_wishlist_lending:
            blocked.append(BookStatus.WISHLIST.value)
        return blocked

    def lend(self, book_id: str, data: LendRequest) -> Result[Book]:
        """Lend a book to a borrower.

        Args:
            book_id: Book ID
            data: Borrower and date information

        Returns:
            Ok with the book and its new open lending record, or
            INVALID_RANGE / NOT_FOUND / CONFLICT with nothing written
        """
        date_lent = to_utc(data.date_lent)
        expected_return = to_utc(data.expected_return)
        if expected_return <= date_lent:
            return invalid_range("Expected return date must be after the lending date")

        with self.db.get_session() as session:
            result = session.execute(
                update(Book)
                .where(Book.id == book_id, Book.status.not_in(self._lendable_block()))
                .values(status=BookStatus.LENT.value, updated_at=now_storage())
                .execution_options(synchronize_session=False)
            )

            if result.rowcount == 0:
                book = session.get(Book, book_id)
                if book is None:
                    return not_found()
                if book.status == BookStatus.WISHLIST.value:
                    return conflict("Wishlist books must be marked as owned before lending")
                return conflict("Book is already lent out")

            session.add(
                LendingRecord(
                    book_id=book_id,
                    borrower_name=data.borrower_name,
                    borrower_contact=data.borrower_contact,
                    date_lent=to_storage(date_lent),
                    expected_return=to_storage(expected_return),
                    actual_return=None,
                    notes=data.notes,
                )
            )
            session.flush()

            book = self.db.load_book(session, book_id)
            logger.info("Lent book %s to %s", book_id, data.borrower_name)
            return Ok(self.db.detach(session, book))

    def return_book(self, book_id: str, data: Optional[ReturnRequest] = None) -> Result[Book]:
        """Mark a lent book as returned.

        Every open record for the book is closed. Under normal operation there
        is exactly one; closing all of them repairs a book that somehow ended
        up with several.

        Args:
            book_id: Book ID
            data: Optional return timestamp (default: now) and notes

        Returns:
            Ok with the book back in OWNED state, or NOT_FOUND / CONFLICT
        """
        data = data or ReturnRequest()
        returned_at = to_storage(data.actual_return) if data.actual_return else to_storage(utcnow())

        with self.db.get_session() as session:
            result = session.execute(
                update(Book)
                .where(Book.id == book_id, Book.status == BookStatus.LENT.value)
                .values(status=BookStatus.OWNED.value, updated_at=now_storage())
                .execution_options(synchronize_session=False)
            )

            if result.rowcount == 0:
                if session.get(Book, book_id) is None:
                    return not_found()
                return conflict("Book is not currently lent out")

            open_records = list(
                session.execute(
                    select(LendingRecord).where(
                        LendingRecord.book_id == book_id,
                        LendingRecord.actual_return.is_(None),
                    )
                ).scalars().all()
            )

            if not open_records:
                logger.warning("Book %s was lent without an open lending record", book_id)
            elif len(open_records) > 1:
                logger.warning(
                    "Book %s had %d open lending records; closing all of them",
                    book_id,
                    len(open_records),
                )

            for record in open_records:
                record.actual_return = returned_at
                if data.notes:
                    if record.notes:
                        record.notes = f"{record.notes}\n\nReturn notes: {data.notes}"
                    else:
                        record.notes = data.notes
            session.flush()

            book = self.db.load_book(session, book_id)
            logger.info("Book %s returned", book_id)
            return Ok(self.db.detach(session, book))

    def history(self, book_id: str) -> Result[list[LendingRecord]]:
        """Get the lending history for a book, most recent first.

        Args:
            book_id: Book ID

        Returns:
            Ok with the list of records, or NOT_FOUND
        """
        with self.db.get_session() as session:
            if session.get(Book, book_id) is None:
                return not_found()
            records = self.db.get_lending_records(book_id, session=session)
            for record in records:
                session.expunge(record)
            return Ok(records)
