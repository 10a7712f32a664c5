from typing import Callable, Iterable, List, Protocol, Sequence, TypeVar

from sqlalchemy.orm import Session

from app.db.models import Book, Circulation, Member
from app.schemas.book import BookSummary
from app.schemas.circulation import CirculationSnapshotRow
from app.schemas.member import MemberSummary

# Máximo de ids por cláusula IN (...)
IN_CLAUSE_BATCH_SIZE = 500

T = TypeVar("T")


class RecordStore(Protocol):
    """Lecturas que necesitan los reportes del store de registros."""

    def fetch_circulation(self) -> List[CirculationSnapshotRow]:
        ...

    def fetch_books_by_ids(self, ids: Sequence[str]) -> List[BookSummary]:
        ...

    def fetch_members_by_ids(self, ids: Sequence[str]) -> List[MemberSummary]:
        ...


def _batched(ids: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for start in range(0, len(ids), size):
        yield ids[start:start + size]


class SqlRecordStore:
    """
    Implementación sobre SQLAlchemy.

    Cada lectura abre su propia sesión, así se puede ejecutar desde un
    worker thread y las dos lecturas de catálogo pueden correr en paralelo.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def fetch_circulation(self) -> List[CirculationSnapshotRow]:
        with self._session_factory() as db:
            rows = (
                db.query(
                    Circulation.id,
                    Circulation.book_id,
                    Circulation.member_id,
                    Circulation.status,
                    Circulation.due_date,
                )
                .order_by(Circulation.issue_date, Circulation.id)
                .all()
            )

        return [
            CirculationSnapshotRow(
                id=row.id,
                book_id=row.book_id,
                member_id=row.member_id,
                status=row.status.value,
                due_date=row.due_date,
            )
            for row in rows
        ]

    def fetch_books_by_ids(self, ids: Sequence[str]) -> List[BookSummary]:
        return self._fetch_by_ids(
            ids,
            lambda db, chunk: db.query(Book.id, Book.title, Book.author).filter(Book.id.in_(chunk)).all(),
            BookSummary,
        )

    def fetch_members_by_ids(self, ids: Sequence[str]) -> List[MemberSummary]:
        return self._fetch_by_ids(
            ids,
            lambda db, chunk: db.query(Member.id, Member.name, Member.email).filter(Member.id.in_(chunk)).all(),
            MemberSummary,
        )

    def _fetch_by_ids(self, ids, query, schema: type[T]) -> List[T]:
        ids = list(ids)
        if not ids:
            return []

        results: List[T] = []
        with self._session_factory() as db:
            for chunk in _batched(ids, IN_CLAUSE_BATCH_SIZE):
                results.extend(schema.model_validate(row) for row in query(db, chunk))
        return results
