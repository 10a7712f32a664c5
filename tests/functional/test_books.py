import logging
import uuid
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.api.v1.dependencies import get_db
from app.main import app

pytestmark = pytest.mark.usefixtures("clean_db")


def _unique_isbn(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def _create_book(client: TestClient, headers: Dict, title: str, author: str = "Autor Test", **extra) -> Dict:
    payload = {"title": title, "author": author, "total_copies": 2}
    payload.update(extra)
    resp = client.post("/api/v1/books/", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_create_and_get_book(client: TestClient, admin_headers):
    book = _create_book(client, admin_headers, "Dune", author="Frank Herbert", isbn=_unique_isbn("BK"))

    assert book["total_copies"] == 2
    assert book["available_copies"] == 2

    resp = client.get(f"/api/v1/books/{book['id']}", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["title"] == "Dune"


def test_get_missing_book_returns_404(client: TestClient, admin_headers):
    resp = client.get(f"/api/v1/books/{uuid.uuid4()}", headers=admin_headers)
    assert resp.status_code == 404


def test_duplicate_isbn_conflict(client: TestClient, admin_headers):
    isbn = _unique_isbn("DUP")
    _create_book(client, admin_headers, "Primero", isbn=isbn)

    resp = client.post(
        "/api/v1/books/",
        json={"title": "Segundo", "isbn": isbn, "total_copies": 1},
        headers=admin_headers,
    )
    assert resp.status_code == 409


def test_list_books_filters_and_orders(client: TestClient, admin_headers):
    _create_book(client, admin_headers, "Emma", author="Jane Austen")
    _create_book(client, admin_headers, "Persuasion", author="Jane Austen")
    _create_book(client, admin_headers, "Dracula", author="Bram Stoker")

    resp = client.get("/api/v1/books/", params={"author": "austen"}, headers=admin_headers)
    assert resp.status_code == 200
    assert [b["title"] for b in resp.json()] == ["Emma", "Persuasion"]

    resp = client.get("/api/v1/books/", params={"order_by": "title", "order_dir": "desc"}, headers=admin_headers)
    assert [b["title"] for b in resp.json()] == ["Persuasion", "Emma", "Dracula"]


def test_update_book(client: TestClient, admin_headers):
    book = _create_book(client, admin_headers, "Borrador")

    resp = client.put(f"/api/v1/books/{book['id']}", json={"title": "Final"}, headers=admin_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["title"] == "Final"


def test_update_book_rejects_more_available_than_total(client: TestClient, admin_headers):
    book = _create_book(client, admin_headers, "Copias")

    resp = client.put(f"/api/v1/books/{book['id']}", json={"available_copies": 5}, headers=admin_headers)
    assert resp.status_code == 400


def test_delete_book(client: TestClient, admin_headers):
    book = _create_book(client, admin_headers, "Para borrar")

    resp = client.delete(f"/api/v1/books/{book['id']}", headers=admin_headers)
    assert resp.status_code == 204

    resp = client.get(f"/api/v1/books/{book['id']}", headers=admin_headers)
    assert resp.status_code == 404


# ---- Selector de libros ----

def test_search_requires_two_characters(client: TestClient, admin_headers):
    _create_book(client, admin_headers, "Dune")

    resp = client.get("/api/v1/books/search", params={"q": "D"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == []


def test_search_matches_title_author_and_isbn(client: TestClient, admin_headers):
    dune = _create_book(client, admin_headers, "Dune", author="Frank Herbert", isbn="978-0441013593")
    _create_book(client, admin_headers, "Emma", author="Jane Austen")

    resp = client.get("/api/v1/books/search", params={"q": "herb"}, headers=admin_headers)
    assert resp.status_code == 200
    options = resp.json()
    assert options == [{"value": dune["id"], "label": "Dune", "data": {"id": dune["id"], "title": "Dune"}}]

    resp = client.get("/api/v1/books/search", params={"q": "0441"}, headers=admin_headers)
    assert [o["label"] for o in resp.json()] == ["Dune"]


def test_search_is_limited_to_twenty_results(client: TestClient, admin_headers):
    for i in range(25):
        _create_book(client, admin_headers, f"Serie {i:02d}")

    resp = client.get("/api/v1/books/search", params={"q": "serie"}, headers=admin_headers)
    assert resp.status_code == 200
    assert len(resp.json()) == 20


class _BrokenSession:
    def query(self, *args, **kwargs):
        raise OperationalError("SELECT books", {}, ConnectionError("database is locked"))

    def close(self):
        pass


def test_search_store_error_returns_empty_list(client: TestClient, admin_headers, caplog):
    caplog.set_level(logging.INFO)
    app.dependency_overrides[get_db] = lambda: _BrokenSession()

    resp = client.get("/api/v1/books/search", params={"q": "dune"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json() == []

    failed = [r for r in caplog.records if r.getMessage() == "search_failed"]
    assert failed
    assert failed[0].levelno == logging.WARNING
    assert failed[0].resource == "books"
    assert failed[0].query == "dune"
