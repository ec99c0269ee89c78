"""Sample catalog data for demos and local development."""

import logging
from datetime import datetime, timezone

from .catalog import CatalogManager
from .db.models import Book
from .db.schemas import BookCreate, BookStatus
from .db.sqlite import Database
from .lending import LendingManager, LendRequest

logger = logging.getLogger(__name__)

SAMPLE_BOOKS = [
    {
        "title": "The Elegance of Typography",
        "author": "Marcus Reed",
        "isbn": "978-0-123456-78-9",
        "genre": "DESIGN",
        "description": "A comprehensive guide to the art and science of typography in modern design.",
        "status": BookStatus.OWNED,
    },
    {
        "title": "Modern Architecture",
        "author": "Sarah Johnson",
        "isbn": "978-0-987654-32-1",
        "genre": "ARCHITECTURE",
        "description": "Exploring contemporary architectural movements and their impact on urban design.",
        "status": BookStatus.OWNED,
        "lending": {
            "borrower_name": "Alex Thompson",
            "borrower_contact": "alex@email.com",
            "date_lent": datetime(2024, 3, 1, tzinfo=timezone.utc),
            "expected_return": datetime(2024, 3, 15, tzinfo=timezone.utc),
            "notes": "Borrowed for architecture class project",
        },
    },
    {
        "title": "Digital Renaissance",
        "author": "Elena Martinez",
        "isbn": "978-0-555666-77-8",
        "genre": "TECHNOLOGY",
        "description": "How technology is reshaping art, culture, and human creativity in the 21st century.",
        "status": BookStatus.WISHLIST,
    },
    {
        "title": "The Art of Clean Code",
        "author": "Robert C. Martin",
        "isbn": "978-0-132350-88-4",
        "genre": "TECHNOLOGY",
        "description": "A handbook of agile software craftsmanship.",
        "status": BookStatus.OWNED,
    },
    {
        "title": "Sapiens: A Brief History of Humankind",
        "author": "Yuval Noah Harari",
        "isbn": "978-0-062316-09-7",
        "genre": "HISTORY",
        "description": "From a renowned historian comes a groundbreaking narrative of humanity's creation and evolution.",
        "status": BookStatus.OWNED,
    },
    {
        "title": "The Design of Everyday Things",
        "author": "Don Norman",
        "isbn": "978-0-465050-65-0",
        "genre": "DESIGN",
        "description": "The ultimate guide to human-centered design.",
        "status": BookStatus.OWNED,
        "lending": {
            "borrower_name": "Maria Garcia",
            "borrower_contact": "+1-555-0123",
            "date_lent": datetime(2024, 2, 20, tzinfo=timezone.utc),
            "expected_return": datetime(2024, 3, 20, tzinfo=timezone.utc),
            "notes": "Research for UX design thesis",
        },
    },
]


def seed_library(db: Database, clear: bool = True) -> list[Book]:
    """Populate the database with the sample catalog.

    Args:
        db: Database instance
        clear: Drop existing books and lending history first

    Returns:
        The created books, in their final state
    """
    if clear:
        db.drop_tables()
        db.create_tables()

    catalog = CatalogManager(db)
    lending = LendingManager(db)
    books = []

    for entry in SAMPLE_BOOKS:
        entry = dict(entry)
        loan = entry.pop("lending", None)
        book = catalog.create_book(BookCreate(**entry)).value
        if loan:
            book = lending.lend(book.id, LendRequest(**loan)).value
        books.append(book)

    logger.info("Seeded %d books", len(books))
    return books
