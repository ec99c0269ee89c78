"""REST routes for /api/books."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from ..catalog import CatalogManager
from ..config import Config
from ..db.schemas import BookCreate, BookResponse, BookUpdate, LendingRecordResponse
from ..db.sqlite import Database
from ..lending import LendingManager, LendRequest, ReturnRequest
from ..search import BookQuery, SearchManager
from ..stats import LibraryAnalytics
from .envelope import from_err, success
from .uploads import FILE_KINDS, UploadStore

router = APIRouter(prefix="/books", tags=["books"])


# ============================================================================
# Dependencies
# ============================================================================


def get_database(request: Request) -> Database:
    return request.app.state.db


def get_config(request: Request) -> Config:
    return request.app.state.config


def get_uploads(request: Request) -> UploadStore:
    return request.app.state.uploads


def get_catalog(db: Database = Depends(get_database)) -> CatalogManager:
    return CatalogManager(db)


def get_lending(
    db: Database = Depends(get_database), config: Config = Depends(get_config)
) -> LendingManager:
    return LendingManager(db, allow_wishlist_lending=config.allow_wishlist_lending)


def get_search(db: Database = Depends(get_database)) -> SearchManager:
    return SearchManager(db)


def get_analytics(db: Database = Depends(get_database)) -> LibraryAnalytics:
    return LibraryAnalytics(db)


# ============================================================================
# Helpers
# ============================================================================


async def read_book_payload(request: Request) -> tuple[dict[str, Any], dict[str, UploadFile]]:
    """Read a book body sent either as JSON or as a multipart form.

    Returns:
        Tuple of (plain fields, uploaded files keyed by form field name)
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data") or content_type.startswith(
        "application/x-www-form-urlencoded"
    ):
        form = await request.form()
        fields: dict[str, Any] = {}
        files: dict[str, UploadFile] = {}
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                # Browsers send an empty part when no file was chosen
                if key in FILE_KINDS and value.filename:
                    files[key] = value
            else:
                fields[key] = value
        return fields, files

    body = await request.body()
    if not body:
        return {}, {}
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Malformed JSON body")
    if not isinstance(payload, dict):
        payload = {}
    return payload, {}


async def store_files(uploads: UploadStore, files: dict[str, UploadFile]) -> dict[str, str]:
    """Store uploaded files, returning references keyed by form field name."""
    stored: dict[str, str] = {}
    try:
        for field, upload in files.items():
            stored[field] = await uploads.save(upload, FILE_KINDS[field])
    except Exception:
        uploads.release(*stored.values())
        raise
    return stored


def book_data(book) -> BookResponse:
    return BookResponse.model_validate(book)


# ============================================================================
# Collection routes
# ============================================================================


@router.get("")
def list_books(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    genre: Optional[str] = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
    manager: SearchManager = Depends(get_search),
) -> JSONResponse:
    """List books with optional search/status/genre filters and pagination."""
    query = BookQuery(search=search, status=status, genre=genre, page=page, limit=limit)
    result = manager.list_books(query)
    if not result.ok:
        return from_err(result)
    return success(result.value)


@router.get("/stats")
def get_stats(analytics: LibraryAnalytics = Depends(get_analytics)) -> JSONResponse:
    """Counts of books by status."""
    result = analytics.get_stats()
    if not result.ok:
        return from_err(result)
    return success(result.value)


@router.get("/overdue")
def get_overdue_books(analytics: LibraryAnalytics = Depends(get_analytics)) -> JSONResponse:
    """Lent books past their expected return date."""
    result = analytics.get_overdue_books()
    if not result.ok:
        return from_err(result)
    return success([book_data(book) for book in result.value])


@router.post("")
async def create_book(
    request: Request,
    catalog: CatalogManager = Depends(get_catalog),
    uploads: UploadStore = Depends(get_uploads),
) -> JSONResponse:
    """Create a book from JSON or a multipart form with optional files."""
    fields, files = await read_book_payload(request)
    data = BookCreate.model_validate(fields)

    stored = await store_files(uploads, files)
    if "coverImage" in stored:
        data.cover_image = stored["coverImage"]
    if "pdfFile" in stored:
        data.pdf_file = stored["pdfFile"]

    result = catalog.create_book(data)
    if not result.ok:
        uploads.release(*stored.values())
        return from_err(result)
    return success(book_data(result.value), "Book created successfully", status_code=201)


# ============================================================================
# Item routes
# ============================================================================


@router.get("/{book_id}")
def get_book(book_id: str, catalog: CatalogManager = Depends(get_catalog)) -> JSONResponse:
    """Get a single book with its lending info."""
    result = catalog.get_book(book_id)
    if not result.ok:
        return from_err(result)
    return success(book_data(result.value))


@router.get("/{book_id}/history")
def get_history(book_id: str, lending: LendingManager = Depends(get_lending)) -> JSONResponse:
    """Lending history of a book, most recent first."""
    result = lending.history(book_id)
    if not result.ok:
        return from_err(result)
    return success([LendingRecordResponse.model_validate(r) for r in result.value])


@router.put("/{book_id}")
async def update_book(
    book_id: str,
    request: Request,
    catalog: CatalogManager = Depends(get_catalog),
    uploads: UploadStore = Depends(get_uploads),
) -> JSONResponse:
    """Partially update a book; new files replace (and delete) old ones."""
    existing = catalog.get_book(book_id)
    if not existing.ok:
        return from_err(existing)

    fields, files = await read_book_payload(request)
    data = BookUpdate.model_validate(fields)

    stored = await store_files(uploads, files)
    if "coverImage" in stored:
        data.cover_image = stored["coverImage"]
    if "pdfFile" in stored:
        data.pdf_file = stored["pdfFile"]

    result = catalog.update_book(book_id, data)
    if not result.ok:
        uploads.release(*stored.values())
        return from_err(result)

    previous = existing.value
    changed = data.model_fields_set
    if "cover_image" in changed and previous.cover_image != result.value.cover_image:
        uploads.release(previous.cover_image)
    if "pdf_file" in changed and previous.pdf_file != result.value.pdf_file:
        uploads.release(previous.pdf_file)

    return success(book_data(result.value), "Book updated successfully")


@router.delete("/{book_id}")
def delete_book(
    book_id: str,
    catalog: CatalogManager = Depends(get_catalog),
    uploads: UploadStore = Depends(get_uploads),
) -> JSONResponse:
    """Delete a book, its lending history and its stored files."""
    result = catalog.delete_book(book_id)
    if not result.ok:
        return from_err(result)
    uploads.release(result.value.cover_image, result.value.pdf_file)
    return success(message="Book deleted successfully")


@router.post("/{book_id}/lend")
def lend_book(
    book_id: str,
    data: LendRequest,
    lending: LendingManager = Depends(get_lending),
) -> JSONResponse:
    """Lend a book to a borrower."""
    result = lending.lend(book_id, data)
    if not result.ok:
        return from_err(result)
    return success(book_data(result.value), "Book lent successfully")


@router.post("/{book_id}/return")
def return_book(
    book_id: str,
    data: Optional[ReturnRequest] = None,
    lending: LendingManager = Depends(get_lending),
) -> JSONResponse:
    """Mark a lent book as returned."""
    result = lending.return_book(book_id, data)
    if not result.ok:
        return from_err(result)
    return success(book_data(result.value), "Book returned successfully")
