"""Tests for the REST API."""

import pytest
from fastapi.testclient import TestClient

from homelibrary.config import Config
from homelibrary.search import SearchManager
from homelibrary.server import create_app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

LOAN = {
    "borrowerName": "Ann",
    "borrowerContact": "ann@x.io",
    "dateLent": "2024-01-01T00:00:00Z",
    "expectedReturn": "2024-01-15T00:00:00Z",
}


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(db_path=":memory:", upload_dir=tmp_path / "uploads")


@pytest.fixture
def client(config, db):
    with TestClient(create_app(config, database=db)) as test_client:
        yield test_client


def create(client, **fields):
    body = {"title": "Dune", "author": "Frank Herbert", **fields}
    response = client.post("/api/books", json=body)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestHealth:
    """Tests for service endpoints."""

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["status"] == "healthy"
        assert body["data"]["database"] is True

    def test_index(self, client):
        body = client.get("/").json()

        assert body["data"]["endpoints"]["books"] == "/api/books"

    def test_unknown_route(self, client):
        response = client.get("/api/nope")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Route GET /api/nope not found"}


class TestBooksApi:
    """Tests for catalog endpoints."""

    def test_create(self, client):
        response = client.post(
            "/api/books", json={"title": "Dune", "author": "Frank Herbert", "genre": "SCIFI"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Book created successfully"
        assert body["data"]["status"] == "OWNED"
        assert body["data"]["genre"] == "SCIFI"
        assert body["data"]["lendingInfo"] is None

    def test_create_missing_title(self, client):
        response = client.post("/api/books", json={"author": "A"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Validation failed"
        assert any(d["field"] == "title" for d in body["data"]["details"])

    def test_create_as_lent_rejected(self, client):
        response = client.post("/api/books", json={"title": "X", "author": "A", "status": "LENT"})

        assert response.status_code == 400
        assert response.json()["data"]["details"][0]["field"] == "status"

    def test_malformed_json(self, client):
        response = client.post(
            "/api/books", content=b"{not json", headers={"content-type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_get(self, client):
        book = create(client)

        response = client.get(f"/api/books/{book['id']}")

        assert response.status_code == 200
        assert response.json()["data"]["title"] == "Dune"

    def test_get_missing(self, client):
        response = client.get("/api/books/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Book not found"}

    def test_update(self, client):
        book = create(client, status="WISHLIST")

        response = client.put(f"/api/books/{book['id']}", json={"status": "OWNED"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "OWNED"
        assert data["title"] == "Dune"

    def test_update_missing(self, client):
        response = client.put("/api/books/does-not-exist", json={"title": "X"})

        assert response.status_code == 404

    def test_delete(self, client):
        book = create(client)

        response = client.delete(f"/api/books/{book['id']}")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Book deleted successfully"}
        assert client.get(f"/api/books/{book['id']}").status_code == 404

    def test_list_pagination(self, client):
        for i in range(3):
            create(client, title=f"Book {i}")

        data = client.get("/api/books", params={"page": 2, "limit": 2}).json()["data"]

        assert data["total"] == 3
        assert data["page"] == 2
        assert data["limit"] == 2
        assert data["totalPages"] == 2
        assert len(data["items"]) == 1

    def test_list_filters(self, client):
        create(client, title="Dune", genre="SCIFI")
        create(client, title="Emma", author="Jane Austen", genre="CLASSIC", status="WISHLIST")

        data = client.get("/api/books", params={"search": "austen", "status": "all"}).json()["data"]

        assert [b["title"] for b in data["items"]] == ["Emma"]

    @pytest.mark.parametrize("params", [{"status": "BORROWED"}, {"limit": 500}, {"page": 0}])
    def test_list_bad_query(self, client, params):
        response = client.get("/api/books", params=params)

        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"


class TestLendingApi:
    """Tests for lend/return endpoints."""

    def test_lend_and_return(self, client):
        book = create(client)

        lent = client.post(f"/api/books/{book['id']}/lend", json=LOAN)

        assert lent.status_code == 200
        body = lent.json()
        assert body["message"] == "Book lent successfully"
        assert body["data"]["status"] == "LENT"
        info = body["data"]["lendingInfo"]
        assert info["borrowerName"] == "Ann"
        assert info["actualReturn"] is None
        assert info["expectedReturn"].startswith("2024-01-15")

        returned = client.post(
            f"/api/books/{book['id']}/return", json={"notes": "Fine shape"}
        )

        assert returned.status_code == 200
        data = returned.json()["data"]
        assert data["status"] == "OWNED"
        assert data["lendingInfo"]["actualReturn"] is not None
        assert data["lendingInfo"]["notes"] == "Fine shape"

    def test_return_without_body(self, client):
        book = create(client)
        client.post(f"/api/books/{book['id']}/lend", json=LOAN)

        response = client.post(f"/api/books/{book['id']}/return")

        assert response.status_code == 200

    def test_lend_twice(self, client):
        book = create(client)
        client.post(f"/api/books/{book['id']}/lend", json=LOAN)

        response = client.post(f"/api/books/{book['id']}/lend", json=LOAN)

        assert response.status_code == 400
        assert response.json()["error"] == "Book is already lent out"

    def test_lend_invalid_range(self, client):
        book = create(client)
        loan = {**LOAN, "expectedReturn": "2023-12-01T00:00:00Z"}

        response = client.post(f"/api/books/{book['id']}/lend", json=loan)

        assert response.status_code == 400
        assert client.get(f"/api/books/{book['id']}").json()["data"]["status"] == "OWNED"

    def test_lend_missing_fields(self, client):
        book = create(client)

        response = client.post(f"/api/books/{book['id']}/lend", json={"borrowerName": "Ann"})

        assert response.status_code == 400
        fields = {d["field"] for d in response.json()["data"]["details"]}
        assert "borrowerContact" in fields

    def test_lend_missing_book(self, client):
        response = client.post("/api/books/does-not-exist/lend", json=LOAN)

        assert response.status_code == 404

    def test_return_not_lent(self, client):
        book = create(client)

        response = client.post(f"/api/books/{book['id']}/return")

        assert response.status_code == 400
        assert response.json()["error"] == "Book is not currently lent out"

    def test_status_change_while_lent(self, client):
        book = create(client)
        client.post(f"/api/books/{book['id']}/lend", json=LOAN)

        response = client.put(f"/api/books/{book['id']}", json={"status": "WISHLIST"})

        assert response.status_code == 400

    def test_history(self, client):
        book = create(client)
        client.post(f"/api/books/{book['id']}/lend", json=LOAN)
        client.post(f"/api/books/{book['id']}/return")

        data = client.get(f"/api/books/{book['id']}/history").json()["data"]

        assert len(data) == 1
        assert data[0]["borrowerName"] == "Ann"

    def test_stats_and_overdue(self, client):
        lent = create(client, title="Lent")
        create(client, title="Owned")
        create(client, title="Wanted", status="WISHLIST")
        client.post(f"/api/books/{lent['id']}/lend", json=LOAN)

        stats = client.get("/api/books/stats").json()["data"]
        overdue = client.get("/api/books/overdue").json()["data"]

        assert stats == {"totalBooks": 3, "ownedBooks": 1, "lentBooks": 1, "wishlistBooks": 1}
        assert [b["id"] for b in overdue] == [lent["id"]]
        assert overdue[0]["lendingInfo"]["isOverdue"] is True


class TestUploadsApi:
    """Tests for multipart uploads."""

    def test_cover_upload(self, client, config):
        response = client.post(
            "/api/books",
            data={"title": "Dune", "author": "Frank Herbert"},
            files={"coverImage": ("cover.png", PNG_BYTES, "image/png")},
        )

        assert response.status_code == 201
        cover = response.json()["data"]["coverImage"]
        assert cover.startswith("/uploads/covers/")
        assert cover.endswith(".png")
        assert client.get(cover).content == PNG_BYTES

        book_id = response.json()["data"]["id"]
        client.delete(f"/api/books/{book_id}")
        assert not (config.upload_dir / cover[len("/uploads/"):]).exists()

    def test_wrong_cover_type(self, client):
        response = client.post(
            "/api/books",
            data={"title": "Dune", "author": "Frank Herbert"},
            files={"coverImage": ("cover.txt", b"hello", "text/plain")},
        )

        assert response.status_code == 400
        assert "Invalid image file type" in response.json()["error"]

    def test_replacing_pdf_removes_old_file(self, client, config):
        created = client.post(
            "/api/books",
            data={"title": "Dune", "author": "Frank Herbert"},
            files={"pdfFile": ("dune.pdf", b"%PDF-1.4 old", "application/pdf")},
        ).json()["data"]
        old = created["pdfFile"]

        updated = client.put(
            f"/api/books/{created['id']}",
            files={"pdfFile": ("dune.pdf", b"%PDF-1.4 new", "application/pdf")},
        ).json()["data"]

        assert updated["pdfFile"] != old
        assert not (config.upload_dir / old[len("/uploads/"):]).exists()
        assert client.get(updated["pdfFile"]).content == b"%PDF-1.4 new"


class TestErrors:
    """Tests for unexpected error handling."""

    def test_production_hides_details(self, tmp_path, db, monkeypatch):
        def boom(self, query):
            raise RuntimeError("secret failure")

        monkeypatch.setattr(SearchManager, "list_books", boom)
        config = Config(db_path=":memory:", upload_dir=tmp_path, environment="production")

        with TestClient(create_app(config, database=db), raise_server_exceptions=False) as client:
            response = client.get("/api/books")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Internal server error"}

    def test_development_shows_details(self, tmp_path, db, monkeypatch):
        def boom(self, query):
            raise RuntimeError("secret failure")

        monkeypatch.setattr(SearchManager, "list_books", boom)
        config = Config(db_path=":memory:", upload_dir=tmp_path)

        with TestClient(create_app(config, database=db), raise_server_exceptions=False) as client:
            response = client.get("/api/books")

        assert response.status_code == 500
        assert response.json()["error"] == "secret failure"
