"""Manager for filtered, paginated book listing."""

from sqlalchemy import String, func, or_, select

from ..db.models import Book
from ..db.schemas import BookResponse
from ..db.sqlite import Database
from ..results import Ok, Result
from .schemas import BookPage, BookQuery


def _folded(column):
    """Case-fold a text column with the casefold() function registered per connection."""
    return func.casefold(column, type_=String)


class SearchManager:
    """Translates filter criteria into a page of books and a total count."""

    def __init__(self, db: Database):
        """Initialize search manager.

        Args:
            db: Database instance
        """
        self.db = db

    @staticmethod
    def _conditions(query: BookQuery) -> list:
        """Build WHERE conditions for a query."""
        conditions = []

        if query.search:
            term = query.search.casefold()
            conditions.append(
                or_(
                    _folded(Book.title).contains(term, autoescape=True),
                    _folded(Book.author).contains(term, autoescape=True),
                    _folded(Book.description).contains(term, autoescape=True),
                    # ISBNs are codes; match them as typed
                    Book.isbn.contains(query.search, autoescape=True),
                )
            )

        status = query.status_filter
        if status is not None:
            conditions.append(Book.status == status.value)

        genre = query.genre_filter
        if genre is not None:
            conditions.append(
                _folded(Book.genre).contains(genre.casefold(), autoescape=True)
            )

        return conditions

    def find_books(self, query: BookQuery) -> tuple[list[Book], int]:
        """Get the matching books for one page and the total match count.

        Books are ordered most recently added first; ties on the creation
        timestamp fall back to the id so page boundaries are stable.

        Args:
            query: Filter and pagination criteria

        Returns:
            Tuple of (books on the page, total matches)
        """
        conditions = self._conditions(query)

        with self.db.get_session() as session:
            total = session.execute(
                select(func.count()).select_from(Book).where(*conditions)
            ).scalar() or 0

            stmt = (
                select(Book)
                .where(*conditions)
                .order_by(Book.created_at.desc(), Book.id.desc())
                .offset(query.offset)
                .limit(query.limit)
            )
            books = list(session.execute(stmt).scalars().all())
            for book in books:
                session.expunge(book)

        return books, total

    def list_books(self, query: BookQuery) -> Result[BookPage]:
        """List books matching the query.

        No matches is not an error: the page is empty with total 0.

        Args:
            query: Filter and pagination criteria

        Returns:
            Ok with a BookPage of items, total, page, limit and total_pages
        """
        books, total = self.find_books(query)
        return Ok(
            BookPage(
                items=[BookResponse.model_validate(book) for book in books],
                total=total,
                page=query.page,
                limit=query.limit,
                total_pages=BookPage.count_pages(total, query.limit),
            )
        )
