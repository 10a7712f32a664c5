from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import Session

from fastapi import HTTPException, status

from app.core.config import settings
from app.db.models import Book, Circulation, CirculationStatus, Member


def default_due_date(issue_date: datetime) -> datetime:
    return issue_date + timedelta(days=settings.LOAN_PERIOD_DAYS)


def issue_book(
    db: Session,
    book_id: str,
    member_id: str,
    due_date: datetime | None = None,
) -> Circulation:
    """Presta un libro a un socio: crea la fila `issued` y descuenta una copia."""
    book = db.query(Book).filter(Book.id == book_id).first()
    if not book:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Book not found")

    member = db.query(Member).filter(Member.id == member_id).first()
    if not member:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Member not found")

    if book.available_copies < 1:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No available copies for this book",
        )

    now = datetime.now(timezone.utc)
    if due_date is None:
        due_date = default_due_date(now)
    elif due_date.tzinfo is None:
        due_date = due_date.replace(tzinfo=timezone.utc)

    if due_date <= now:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Due date must be in the future",
        )

    record = Circulation(
        book_id=book.id,
        member_id=member.id,
        status=CirculationStatus.ISSUED,
        issue_date=now,
        due_date=due_date,
    )
    book.available_copies -= 1

    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def return_book(db: Session, record: Circulation) -> Circulation:
    """Registra la devolución. Solo un préstamo `issued` puede devolverse."""
    if record.status != CirculationStatus.ISSUED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status transition from {record.status.value} to returned",
        )

    record.status = CirculationStatus.RETURNED
    record.return_date = datetime.now(timezone.utc)

    # El libro pudo haberse borrado (book_id en NULL)
    book = record.book
    if book is not None and book.available_copies < book.total_copies:
        book.available_copies += 1

    db.commit()
    db.refresh(record)
    return record
