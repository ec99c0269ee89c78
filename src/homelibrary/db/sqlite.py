"""SQLite database operations.

Handles database connection, session management, and Book CRUD operations.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Optional

from sqlalchemy import create_engine, event, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..timeutil import now_storage
from .models import Base, Book, LendingRecord
from .schemas import BookCreate, BookUpdate

logger = logging.getLogger(__name__)


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    """Turn on SQLite foreign key enforcement so ON DELETE CASCADE applies."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _casefold(value):
    return value.casefold() if value is not None else None


def _register_casefold(dbapi_connection, connection_record) -> None:
    """Expose str.casefold to SQL; SQLite's lower() only folds ASCII."""
    dbapi_connection.create_function("casefold", 1, _casefold, deterministic=True)


class Database:
    """Database connection and operations manager."""

    def __init__(self, db_path: str):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file, or ":memory:".
        """
        self._is_memory = str(db_path) == ":memory:"
        self.db_path = Path(db_path)

        if not self._is_memory:
            self._ensure_directory()

        # For in-memory databases, use StaticPool to reuse the same connection
        # so all sessions share the same in-memory database
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False},
            )
        event.listen(self.engine, "connect", _enable_foreign_keys)
        event.listen(self.engine, "connect", _register_casefold)
        self.SessionLocal = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False, expire_on_commit=False
        )

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        """Close all pooled connections."""
        self.engine.dispose()

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
        return True

    # ========================================================================
    # Book Operations
    # ========================================================================

    @staticmethod
    def load_book(session: Session, book_id: str) -> Optional[Book]:
        """Load a book with fresh lending records inside an open session."""
        stmt = (
            select(Book)
            .where(Book.id == book_id)
            .execution_options(populate_existing=True)
        )
        return session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def detach(session: Session, obj: Any) -> Any:
        """Detach a loaded object (and its records) so it outlives the session."""
        if obj is not None:
            session.expunge(obj)
        return obj

    def create_book(self, book: BookCreate, session: Optional[Session] = None) -> Book:
        """Create a new book record."""

        def _create(s: Session) -> Book:
            db_book = Book(
                title=book.title,
                author=book.author,
                isbn=book.isbn,
                genre=book.genre,
                description=book.description,
                cover_image=book.cover_image,
                pdf_file=book.pdf_file,
                status=book.status.value,
            )
            s.add(db_book)
            s.flush()
            return self.load_book(s, db_book.id)

        if session:
            return _create(session)
        else:
            with self.get_session() as s:
                return self.detach(s, _create(s))

    def get_book(self, book_id: str, session: Optional[Session] = None) -> Optional[Book]:
        """Get a book by ID."""

        def _get(s: Session) -> Optional[Book]:
            return self.load_book(s, book_id)

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                return self.detach(s, _get(s))

    def update_book(
        self, book_id: str, update: BookUpdate, session: Optional[Session] = None
    ) -> Optional[Book]:
        """Update a book record with the fields explicitly set on ``update``."""

        def _update(s: Session) -> Optional[Book]:
            book = s.get(Book, book_id)
            if not book:
                return None

            update_data = update.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if field == "status" and value is not None:
                    setattr(book, field, value.value)
                elif field in ("title", "author", "status") and value is None:
                    # Required columns cannot be cleared
                    continue
                else:
                    setattr(book, field, value)

            book.updated_at = now_storage()
            s.flush()
            return self.load_book(s, book_id)

        if session:
            return _update(session)
        else:
            with self.get_session() as s:
                return self.detach(s, _update(s))

    def delete_book(self, book_id: str, session: Optional[Session] = None) -> bool:
        """Delete a book record and its lending history."""

        def _delete(s: Session) -> bool:
            book = s.get(Book, book_id)
            if not book:
                return False
            s.delete(book)
            s.flush()
            logger.info("Deleted book %s", book_id)
            return True

        if session:
            return _delete(session)
        else:
            with self.get_session() as s:
                return _delete(s)

    def get_all_books(self, session: Optional[Session] = None) -> list[Book]:
        """Get all books, newest first."""

        def _get(s: Session) -> list[Book]:
            stmt = select(Book).order_by(Book.created_at.desc(), Book.id.desc())
            return list(s.execute(stmt).scalars().all())

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                books = _get(s)
                for book in books:
                    s.expunge(book)
                return books

    def get_lending_records(
        self, book_id: str, session: Optional[Session] = None
    ) -> list[LendingRecord]:
        """Get the lending history of a book, most recent first."""

        def _get(s: Session) -> list[LendingRecord]:
            stmt = (
                select(LendingRecord)
                .where(LendingRecord.book_id == book_id)
                .order_by(LendingRecord.date_lent.desc(), LendingRecord.created_at.desc())
            )
            return list(s.execute(stmt).scalars().all())

        if session:
            return _get(session)
        else:
            with self.get_session() as s:
                records = _get(s)
                for record in records:
                    s.expunge(record)
                return records
