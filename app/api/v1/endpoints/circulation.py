from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.v1.dependencies import get_db
from app.api.v1.dependencies_auth import get_current_user
from app.db.models import Circulation, CirculationStatus
from app.schemas.circulation import CirculationIssue, CirculationRead
from app.services.circulation_service import issue_book, return_book

import logging

logger = logging.getLogger("api.circulation")


router = APIRouter(
    prefix="/api/v1/circulation",
    tags=["circulation"],
    dependencies=[Depends(get_current_user)],
)


# ---- Listado ----
@router.get("/", response_model=List[CirculationRead])
def list_circulation(
    status_filter: Optional[CirculationStatus] = Query(None, alias="status"),
    book_id: Optional[str] = Query(None),
    member_id: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    query = db.query(Circulation)

    if status_filter:
        query = query.filter(Circulation.status == status_filter)
    if book_id:
        query = query.filter(Circulation.book_id == book_id)
    if member_id:
        query = query.filter(Circulation.member_id == member_id)

    return (
        query.order_by(Circulation.issue_date.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


# ---- Prestar un libro ----
@router.post("/", response_model=CirculationRead, status_code=status.HTTP_201_CREATED)
def create_circulation(
    payload: CirculationIssue,
    db: Session = Depends(get_db),
):
    record = issue_book(db, payload.book_id, payload.member_id, payload.due_date)

    logger.info(
        "circulation_issued",
        extra={
            "operation": "circulation_issue",
            "resource": "circulation",
            "circulation_id": record.id,
            "book_id": record.book_id,
            "member_id": record.member_id,
            "status_code": 201,
        },
    )
    return record


# ---- Detalle ----
@router.get("/{circulation_id}", response_model=CirculationRead)
def get_circulation(
    circulation_id: str,
    db: Session = Depends(get_db),
):
    record = db.query(Circulation).filter(Circulation.id == circulation_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="Circulation record not found")
    return record


# ---- Devolución ----
@router.patch("/{circulation_id}/return", response_model=CirculationRead)
def return_circulation(
    circulation_id: str,
    db: Session = Depends(get_db),
):
    record = db.query(Circulation).filter(Circulation.id == circulation_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="Circulation record not found")

    updated = return_book(db, record)

    logger.info(
        "circulation_returned",
        extra={
            "operation": "circulation_return",
            "resource": "circulation",
            "circulation_id": updated.id,
            "book_id": updated.book_id,
            "member_id": updated.member_id,
            "status_code": 200,
        },
    )
    return updated


# ---- Borrado ----
@router.delete("/{circulation_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_circulation(
    circulation_id: str,
    db: Session = Depends(get_db),
):
    record = db.query(Circulation).filter(Circulation.id == circulation_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="Circulation record not found")

    # Un préstamo todavía emitido devuelve su copia al inventario
    if record.status == CirculationStatus.ISSUED and record.book is not None:
        record.book.available_copies += 1

    db.delete(record)
    db.commit()
    return None
