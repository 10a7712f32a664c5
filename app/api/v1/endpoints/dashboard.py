# app/api/v1/endpoints/dashboard.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func

from app.api.v1.dependencies import get_db
from app.api.v1.dependencies_auth import get_current_user
from app.core.logging import get_logger
from app.db.models import Book, Circulation, CirculationStatus, Member
from app.schemas.auth import ConsoleUser
from app.schemas.stats import DashboardStats

logger = get_logger("api.dashboard")

router = APIRouter(
    prefix="/api/v1/dashboard",
    tags=["dashboard"],
)


@router.get("", response_model=DashboardStats)
def get_dashboard_stats(
    db: Session = Depends(get_db),
    current_user: ConsoleUser = Depends(get_current_user),
):
    """
    Totales del panel principal de la consola.
    """

    # === Libros / Inventario ===
    total_books = db.query(func.count(Book.id)).scalar() or 0
    total_book_copies = db.query(func.coalesce(func.sum(Book.total_copies), 0)).scalar() or 0
    total_available_copies = db.query(func.coalesce(func.sum(Book.available_copies), 0)).scalar() or 0

    # === Socios ===
    total_members = db.query(func.count(Member.id)).scalar() or 0

    # === Circulación ===
    total_circulation = db.query(func.count(Circulation.id)).scalar() or 0

    issued_books = (
        db.query(func.count(Circulation.id))
        .filter(Circulation.status == CirculationStatus.ISSUED)
        .scalar()
        or 0
    )

    now = datetime.now(timezone.utc)
    overdue_books = (
        db.query(func.count(Circulation.id))
        .filter(Circulation.status == CirculationStatus.ISSUED)
        .filter(Circulation.due_date < now)
        .scalar()
        or 0
    )

    stats = DashboardStats(
        total_books=total_books,
        total_book_copies=total_book_copies,
        total_available_copies=total_available_copies,
        total_members=total_members,
        total_circulation=total_circulation,
        issued_books=issued_books,
        overdue_books=overdue_books,
        generated_at=now,
    )

    logger.info(
        "Dashboard stats fetched",
        extra={
            "operation": "dashboard_stats",
            "resource": "stats",
            "user_id": current_user.username,
        },
    )

    return stats
