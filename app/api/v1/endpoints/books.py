from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from sqlalchemy import asc, desc
from sqlalchemy.exc import IntegrityError

from app.api.v1.dependencies import get_db
from app.api.v1.dependencies_auth import get_current_user
from app.core.logging import get_logger
from app.db.models import Book
from app.schemas.book import BookCreate, BookUpdate, BookRead
from app.schemas.search import SearchOption
from app.services.search_service import search_records

logger = get_logger("api.books")

router = APIRouter(
    prefix="/api/v1/books",
    tags=["books"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/", response_model=List[BookRead])
def list_books(
    title: Optional[str] = Query(None),
    author: Optional[str] = Query(None),
    isbn: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    order_by: str = "title",      # "id", "title", "created_at", "publication_year"
    order_dir: str = "asc",       # "asc" o "desc"
    db: Session = Depends(get_db),
):
    query = db.query(Book)

    if title:
        query = query.filter(Book.title.ilike(f"%{title}%"))
    if author:
        query = query.filter(Book.author.ilike(f"%{author}%"))
    if isbn:
        query = query.filter(Book.isbn == isbn)

    # ORDENAMIENTO
    orderable_fields = {
        "id": Book.id,
        "title": Book.title,
        "created_at": Book.created_at,
        "publication_year": Book.publication_year,
    }
    column = orderable_fields.get(order_by, Book.title)

    if order_dir.lower() == "desc":
        query = query.order_by(desc(column))
    else:
        query = query.order_by(asc(column))

    return query.offset(skip).limit(limit).all()


# ---- Selector de libros (debe ir antes de /{book_id}) ----
@router.get("/search", response_model=List[SearchOption])
def search_books(
    q: str = Query("", description="Texto a buscar en título, autor o ISBN"),
    db: Session = Depends(get_db),
):
    return search_records(db, Book, "title", ["title", "author", "isbn"], q)


@router.post("/", response_model=BookRead, status_code=status.HTTP_201_CREATED)
def create_book(
    payload: BookCreate,
    db: Session = Depends(get_db),
):
    book = Book(
        title=payload.title,
        author=payload.author,
        isbn=payload.isbn,
        genre=payload.genre,
        publication_year=payload.publication_year,
        total_copies=payload.total_copies,
        available_copies=payload.total_copies,  # al inicio, todas disponibles
    )

    db.add(book)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="ISBN already exists",
        )
    db.refresh(book)

    logger.info(
        "book_created",
        extra={"operation": "book_create", "resource": "book", "book_id": book.id, "status_code": 201},
    )
    return book


@router.get("/{book_id}", response_model=BookRead)
def get_book(
    book_id: str,
    db: Session = Depends(get_db),
):
    book = db.query(Book).filter(Book.id == book_id).first()
    if not book:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Book not found",
        )
    return book


@router.put("/{book_id}", response_model=BookRead)
def update_book(
    book_id: str,
    payload: BookUpdate,
    db: Session = Depends(get_db),
):
    book = db.query(Book).filter(Book.id == book_id).first()
    if not book:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Book not found",
        )

    update_data = payload.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(book, field, value)

    if book.available_copies > book.total_copies:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="available_copies cannot exceed total_copies",
        )

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="ISBN already exists",
        )
    db.refresh(book)
    return book


@router.delete("/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_book(
    book_id: str,
    db: Session = Depends(get_db),
):
    book = db.query(Book).filter(Book.id == book_id).first()
    if not book:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Book not found",
        )

    # Los préstamos del libro quedan con book_id en NULL (referencia colgante)
    db.delete(book)
    db.commit()

    logger.info(
        "book_deleted",
        extra={"operation": "book_delete", "resource": "book", "book_id": book_id, "status_code": 204},
    )
    return None
