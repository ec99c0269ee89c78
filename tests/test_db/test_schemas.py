"""Tests for Pydantic schemas."""

import pytest
from pydantic import ValidationError

from homelibrary.db.schemas import BookCreate, BookResponse, BookStatus, BookUpdate


class TestBookCreate:
    """Tests for BookCreate schema."""

    def test_minimal(self):
        book = BookCreate(title="Dune", author="Frank Herbert")

        assert book.status == BookStatus.OWNED
        assert book.isbn is None

    def test_accepts_camel_case(self):
        book = BookCreate.model_validate(
            {"title": "Dune", "author": "F", "coverImage": "/uploads/covers/a.jpg"}
        )

        assert book.cover_image == "/uploads/covers/a.jpg"

    def test_strips_title(self):
        assert BookCreate(title="  Dune  ", author="F").title == "Dune"

    @pytest.mark.parametrize("field", ["title", "author"])
    def test_blank_required_field_rejected(self, field):
        data = {"title": "Dune", "author": "F", field: "   "}
        with pytest.raises(ValidationError):
            BookCreate(**data)

    def test_title_too_long(self):
        with pytest.raises(ValidationError):
            BookCreate(title="x" * 256, author="F")

    def test_blank_optional_becomes_none(self):
        book = BookCreate(title="Dune", author="F", genre="  ", isbn="")

        assert book.genre is None
        assert book.isbn is None

    def test_invalid_status(self):
        with pytest.raises(ValidationError):
            BookCreate(title="Dune", author="F", status="BORROWED")


class TestBookUpdate:
    """Tests for BookUpdate schema."""

    def test_tracks_set_fields(self):
        update = BookUpdate(genre="SCIFI")

        assert update.model_dump(exclude_unset=True) == {"genre": "SCIFI"}

    def test_empty_title_rejected(self):
        with pytest.raises(ValidationError):
            BookUpdate(title="")


class TestBookResponse:
    """Tests for BookResponse serialization."""

    def test_camel_case_output(self, lent_book):
        data = BookResponse.model_validate(lent_book).model_dump(mode="json", by_alias=True)

        assert data["status"] == "LENT"
        assert "createdAt" in data
        info = data["lendingInfo"]
        assert info["borrowerName"] == "Ann"
        assert info["actualReturn"] is None
        assert info["isOverdue"] is True
        assert info["bookId"] == lent_book.id

    def test_no_lending_info(self, sample_book):
        data = BookResponse.model_validate(sample_book).model_dump(by_alias=True)

        assert data["lendingInfo"] is None
