"""Pytest configuration and shared fixtures.

This module provides fixtures for testing the homelibrary application,
including in-memory databases, managers and sample books.
"""

from datetime import datetime, timezone
from typing import Generator

import pytest

from homelibrary.catalog import CatalogManager
from homelibrary.config import reset_config
from homelibrary.db.models import Book
from homelibrary.db.schemas import BookCreate, BookStatus
from homelibrary.db.sqlite import Database
from homelibrary.lending import LendingManager, LendRequest
from homelibrary.search import SearchManager
from homelibrary.stats import LibraryAnalytics


def utc(year: int, month: int, day: int, hour: int = 0) -> datetime:
    """Build an aware UTC datetime."""
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_config() -> Generator[None, None, None]:
    """Make sure no test sees config cached by another."""
    reset_config()
    yield
    reset_config()


@pytest.fixture(scope="function")
def db() -> Generator[Database, None, None]:
    """Create an in-memory database with tables."""
    database = Database(":memory:")
    database.create_tables()
    yield database
    database.dispose()


# ============================================================================
# Manager Fixtures
# ============================================================================


@pytest.fixture
def catalog(db: Database) -> CatalogManager:
    return CatalogManager(db)


@pytest.fixture
def lending(db: Database) -> LendingManager:
    return LendingManager(db)


@pytest.fixture
def search(db: Database) -> SearchManager:
    return SearchManager(db)


@pytest.fixture
def analytics(db: Database) -> LibraryAnalytics:
    return LibraryAnalytics(db)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_book_data() -> BookCreate:
    """Create sample book data for testing."""
    return BookCreate(
        title="Dune",
        author="Frank Herbert",
        isbn="9780441013593",
        genre="SCIFI",
        description="A desert planet and its spice.",
    )


@pytest.fixture
def sample_book(catalog: CatalogManager, sample_book_data: BookCreate) -> Book:
    """Create a single OWNED book."""
    return catalog.create_book(sample_book_data).value


@pytest.fixture
def wishlist_book(catalog: CatalogManager) -> Book:
    """Create a WISHLIST book."""
    return catalog.create_book(
        BookCreate(title="Wanted", author="Someone", status=BookStatus.WISHLIST)
    ).value


@pytest.fixture
def loan_request() -> LendRequest:
    """Lend from Jan 1 to Jan 15 2024."""
    return LendRequest(
        borrower_name="Ann",
        borrower_contact="ann@x.io",
        date_lent=utc(2024, 1, 1),
        expected_return=utc(2024, 1, 15),
    )


@pytest.fixture
def lent_book(lending: LendingManager, sample_book: Book, loan_request: LendRequest) -> Book:
    """Create a book that is currently lent to Ann."""
    return lending.lend(sample_book.id, loan_request).value
