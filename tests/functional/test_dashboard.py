from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.db.models import Circulation, CirculationStatus

pytestmark = pytest.mark.usefixtures("clean_db")


def test_dashboard_empty_library(client: TestClient, admin_headers):
    resp = client.get("/api/v1/dashboard", headers=admin_headers)
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["total_books"] == 0
    assert data["total_members"] == 0
    assert data["total_circulation"] == 0
    assert data["issued_books"] == 0
    assert data["overdue_books"] == 0


def test_dashboard_totals(client: TestClient, admin_headers, db_session):
    book = client.post(
        "/api/v1/books/",
        json={"title": "Libro Panel", "total_copies": 3},
        headers=admin_headers,
    ).json()
    client.post("/api/v1/books/", json={"title": "Otro Libro", "total_copies": 2}, headers=admin_headers)
    member = client.post(
        "/api/v1/members/",
        json={"name": "Socio Panel", "email": "panel@example.com"},
        headers=admin_headers,
    ).json()

    resp = client.post(
        "/api/v1/circulation/",
        json={"book_id": book["id"], "member_id": member["id"]},
        headers=admin_headers,
    )
    assert resp.status_code == 201, resp.text

    # préstamo vencido cargado directamente
    now = datetime.now(timezone.utc)
    db_session.add(
        Circulation(
            book_id=book["id"],
            member_id=member["id"],
            status=CirculationStatus.ISSUED,
            issue_date=now - timedelta(days=30),
            due_date=now - timedelta(days=16),
        )
    )
    db_session.add(
        Circulation(
            book_id=book["id"],
            member_id=member["id"],
            status=CirculationStatus.RETURNED,
            issue_date=now - timedelta(days=60),
            due_date=now - timedelta(days=46),
        )
    )
    db_session.commit()

    data = client.get("/api/v1/dashboard", headers=admin_headers).json()
    assert data["total_books"] == 2
    assert data["total_book_copies"] == 5
    assert data["total_available_copies"] == 4
    assert data["total_members"] == 1
    assert data["total_circulation"] == 3
    assert data["issued_books"] == 2
    assert data["overdue_books"] == 1
