"""
Reporte de circulación: libros más leídos, socios más activos y préstamos
emitidos.

El store no hace joins ni agregaciones: se trae un snapshot completo de la
tabla de circulación, luego los libros y socios referenciados por ese
snapshot, y todo se cruza en memoria.
"""
import asyncio
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.book import BookSummary
from app.schemas.circulation import CirculationSnapshotRow
from app.schemas.member import MemberSummary
from app.schemas.report import (
    BookRankEntry,
    CirculationReport,
    IssuedLoanView,
    MemberRankEntry,
    ReportState,
    ReportView,
)
from app.services.record_store import RecordStore

logger = get_logger("services.reports")

ISSUED_STATUS = "issued"
DEFAULT_TOP_N = 10

UNKNOWN_BOOK_TITLE = "Unknown Book (Deleted)"
UNKNOWN_BOOK_AUTHOR = "N/A"
UNKNOWN_MEMBER_NAME = "Unknown Member (Deleted)"
UNKNOWN_MEMBER_EMAIL = ""

FETCH_FAILED_NOTICE = "Failed to fetch reports."


class CirculationFetchError(RuntimeError):
    """No se pudo obtener el snapshot de circulación (error o timeout del store)."""


def referenced_ids(records: Sequence[CirculationSnapshotRow], field: str) -> List[str]:
    """Ids distintos y no vacíos de `field` en orden de aparición."""
    return list(dict.fromkeys(getattr(r, field) for r in records if getattr(r, field)))


def resolve_book(book_id: Optional[str], book_index: Dict[str, BookSummary]) -> BookSummary:
    book = book_index.get(book_id) if book_id else None
    return BookSummary(
        id=book_id,
        title=book.title if book and book.title else UNKNOWN_BOOK_TITLE,
        author=book.author if book and book.author else UNKNOWN_BOOK_AUTHOR,
    )


def resolve_member(member_id: Optional[str], member_index: Dict[str, MemberSummary]) -> MemberSummary:
    member = member_index.get(member_id) if member_id else None
    return MemberSummary(
        id=member_id,
        name=member.name if member and member.name else UNKNOWN_MEMBER_NAME,
        email=member.email if member and member.email else UNKNOWN_MEMBER_EMAIL,
    )


def aggregate_circulation(
    records: Sequence[CirculationSnapshotRow],
    books: Sequence[BookSummary],
    members: Sequence[MemberSummary],
    top_n: int = DEFAULT_TOP_N,
) -> CirculationReport:
    """
    Calcula los tres resultados del reporte a partir del snapshot.

    Función pura: mismo snapshot y catálogos, mismo resultado.

    - Los conteos usan todas las filas de circulación, sin filtrar por estado.
    - Una referencia que no resuelve (libro o socio borrado) sigue contando y
      se muestra con el texto de reemplazo.
    - El orden es descendente por conteo; los empates quedan en orden de
      aparición (sort estable sobre dict con orden de inserción).
    """
    book_index = {b.id: b for b in books if b.id}
    member_index = {m.id: m for m in members if m.id}

    book_counts: Dict[str, int] = {}
    member_counts: Dict[str, int] = {}
    for record in records:
        if record.book_id:
            book_counts[record.book_id] = book_counts.get(record.book_id, 0) + 1
        if record.member_id:
            member_counts[record.member_id] = member_counts.get(record.member_id, 0) + 1

    top_books = []
    for book_id, count in book_counts.items():
        book = resolve_book(book_id, book_index)
        top_books.append(BookRankEntry(id=book_id, title=book.title, author=book.author, count=count))
    top_books.sort(key=lambda entry: entry.count, reverse=True)

    top_members = []
    for member_id, count in member_counts.items():
        member = resolve_member(member_id, member_index)
        top_members.append(MemberRankEntry(id=member_id, name=member.name, email=member.email, count=count))
    top_members.sort(key=lambda entry: entry.count, reverse=True)

    issued_loans = [
        IssuedLoanView(
            id=record.id,
            book_id=record.book_id,
            member_id=record.member_id,
            status=record.status,
            due_date=record.due_date,
            book=resolve_book(record.book_id, book_index),
            member=resolve_member(record.member_id, member_index),
        )
        for record in records
        if record.status == ISSUED_STATUS
    ]

    return CirculationReport(
        top_books=top_books[:top_n],
        top_members=top_members[:top_n],
        issued_loans=issued_loans,
    )


class CirculationReportSession:
    """
    Estado del reporte de circulación para la consola.

    idle -> loading -> ready | failed

    Cada activación recalcula todo desde cero. Si la vista se cierra
    (`dismiss`) o se vuelve a activar antes de que termine una ejecución,
    el resultado de la ejecución vieja se descarta sin tocar el estado.
    No hay reintentos automáticos.
    """

    def __init__(
        self,
        store: RecordStore,
        top_n: int = DEFAULT_TOP_N,
        fetch_timeout: Optional[float] = None,
    ):
        self._store = store
        self._top_n = top_n
        self._fetch_timeout = fetch_timeout
        self._generation = 0
        self._set_state(ReportState.IDLE)

    @property
    def state(self) -> ReportState:
        return self._state

    def view(self) -> ReportView:
        return ReportView(
            state=self._state,
            top_books=self._report.top_books,
            top_members=self._report.top_members,
            issued_loans=self._report.issued_loans,
            error=self._error,
            generated_at=self._generated_at,
        )

    def dismiss(self) -> None:
        # Invalida cualquier ejecución en curso
        self._generation += 1
        self._set_state(ReportState.IDLE)

    async def activate(self) -> ReportView:
        self._generation += 1
        generation = self._generation
        self._set_state(ReportState.LOADING)

        try:
            report = await self._build_report()
        except asyncio.CancelledError:
            # una corrida cancelada no deja la sesión en loading
            if generation == self._generation:
                logger.warning(
                    "report_cancelled",
                    extra={"operation": "circulation_report", "resource": "report", "generation": generation},
                )
                self._set_state(ReportState.IDLE)
            raise
        except CirculationFetchError:
            if generation != self._generation:
                self._log_stale(generation)
                return self.view()

            logger.error(
                "report_failed",
                extra={"operation": "circulation_report", "resource": "report", "generation": generation},
                exc_info=True,
            )
            self._set_state(ReportState.FAILED, error=FETCH_FAILED_NOTICE)
            return self.view()

        if generation != self._generation:
            self._log_stale(generation)
            return self.view()

        self._set_state(ReportState.READY, report=report)
        logger.info(
            "report_ready",
            extra={
                "operation": "circulation_report",
                "resource": "report",
                "generation": generation,
                "top_books": len(report.top_books),
                "top_members": len(report.top_members),
                "issued_loans": len(report.issued_loans),
            },
        )
        return self.view()

    async def _build_report(self) -> CirculationReport:
        try:
            records = await self._fetch(self._store.fetch_circulation)
        except Exception as exc:
            raise CirculationFetchError("circulation snapshot fetch failed") from exc

        book_ids = referenced_ids(records, "book_id")
        member_ids = referenced_ids(records, "member_id")

        # Ambos catálogos deben estar completos antes de resolver cualquier entrada
        books, members = await asyncio.gather(
            self._fetch_catalog("books", self._store.fetch_books_by_ids, book_ids),
            self._fetch_catalog("members", self._store.fetch_members_by_ids, member_ids),
        )

        return aggregate_circulation(records, books, members, top_n=self._top_n)

    async def _fetch_catalog(self, catalog: str, fetch: Callable, ids: List[str]) -> list:
        # Los catálogos solo enriquecen el reporte: si fallan, se usan los textos de reemplazo
        try:
            return await self._fetch(fetch, ids)
        except Exception:
            logger.warning(
                "report_catalog_fetch_failed",
                extra={
                    "operation": "circulation_report",
                    "resource": catalog,
                    "requested_ids": len(ids),
                },
                exc_info=True,
            )
            return []

    async def _fetch(self, fetch: Callable, *args):
        return await asyncio.wait_for(asyncio.to_thread(fetch, *args), timeout=self._fetch_timeout)

    def _set_state(
        self,
        state: ReportState,
        report: Optional[CirculationReport] = None,
        error: Optional[str] = None,
    ) -> None:
        self._state = state
        self._report = report or CirculationReport()
        self._error = error
        self._generated_at = datetime.now(timezone.utc) if state == ReportState.READY else None

    def _log_stale(self, generation: int) -> None:
        logger.info(
            "report_discarded_stale",
            extra={
                "operation": "circulation_report",
                "resource": "report",
                "generation": generation,
                "current_generation": self._generation,
            },
        )


def build_report_session(store: RecordStore) -> CirculationReportSession:
    return CirculationReportSession(
        store,
        top_n=settings.REPORT_TOP_N,
        fetch_timeout=settings.REPORT_FETCH_TIMEOUT_SECONDS,
    )
