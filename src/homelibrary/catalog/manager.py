"""Catalog manager for book create/read/update/delete."""

import logging

from sqlalchemy import update

from ..db.models import Book
from ..db.schemas import BookCreate, BookStatus, BookUpdate
from ..db.sqlite import Database
from ..results import Ok, Result, conflict, not_found, validation_failed
from ..timeutil import now_storage

logger = logging.getLogger(__name__)


class CatalogManager:
    """Manages catalog entries while keeping the lending invariant intact.

    A book is LENT exactly when it has an open lending record, so the status
    can only become LENT through ``LendingManager.lend`` and only leave LENT
    through ``LendingManager.return_book``.
    """

    def __init__(self, db: Database):
        """Initialize catalog manager.

        Args:
            db: Database instance
        """
        self.db = db

    def create_book(self, data: BookCreate) -> Result[Book]:
        """Create a new book in OWNED or WISHLIST state.

        Args:
            data: Book creation data

        Returns:
            Ok with the created book, or a validation Err for status LENT
        """
        if data.status == BookStatus.LENT:
            return validation_failed(
                "status", "A book cannot be created as lent; use the lend operation"
            )

        book = self.db.create_book(data)
        logger.info("Created book %s (%s)", book.id, book.title)
        return Ok(book)

    def get_book(self, book_id: str) -> Result[Book]:
        """Get a book with its lending info.

        Args:
            book_id: Book ID

        Returns:
            Ok with the book, or NOT_FOUND
        """
        book = self.db.get_book(book_id)
        if book is None:
            return not_found()
        return Ok(book)

    def update_book(self, book_id: str, data: BookUpdate) -> Result[Book]:
        """Apply a partial update to a book.

        WISHLIST -> OWNED (acquiring a wished-for book) happens here.

        Args:
            book_id: Book ID
            data: Fields to change

        Returns:
            Ok with the updated book, NOT_FOUND, CONFLICT or VALIDATION
        """
        with self.db.get_session() as session:
            book = self.db.get_book(book_id, session=session)
            if book is None:
                return not_found()

            new_status = data.status
            if new_status is not None and new_status.value != book.status:
                if new_status == BookStatus.LENT:
                    return validation_failed(
                        "status", "Use the lend operation to mark a book as lent"
                    )
                if book.status == BookStatus.LENT.value:
                    return conflict("Book is currently lent out; return it first")

                # Checked against the stored status, not the one read above
                result = session.execute(
                    update(Book)
                    .where(Book.id == book_id, Book.status != BookStatus.LENT.value)
                    .values(status=new_status.value, updated_at=now_storage())
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 0:
                    return conflict("Book is currently lent out; return it first")

            data = BookUpdate.model_validate(
                data.model_dump(exclude_unset=True, exclude={"status"})
            )

            updated = self.db.update_book(book_id, data, session=session)
            return Ok(self.db.detach(session, updated))

    def delete_book(self, book_id: str) -> Result[Book]:
        """Delete a book and cascade its lending history.

        Args:
            book_id: Book ID

        Returns:
            Ok with the deleted book (so its files can be released), or NOT_FOUND
        """
        book = self.db.get_book(book_id)
        if book is None or not self.db.delete_book(book_id):
            return not_found()
        return Ok(book)
