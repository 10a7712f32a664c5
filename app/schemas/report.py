from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from app.schemas.book import BookSummary
from app.schemas.member import MemberSummary


class ReportState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class BookRankEntry(BaseModel):
    id: str
    title: str
    author: str
    count: int


class MemberRankEntry(BaseModel):
    id: str
    name: str
    email: str
    count: int


class IssuedLoanView(BaseModel):
    id: str
    book_id: Optional[str] = None
    member_id: Optional[str] = None
    status: str
    due_date: Optional[datetime] = None
    book: BookSummary
    member: MemberSummary


class CirculationReport(BaseModel):
    top_books: List[BookRankEntry] = []
    top_members: List[MemberRankEntry] = []
    issued_loans: List[IssuedLoanView] = []


class ReportView(BaseModel):
    """Estado actual del reporte tal como lo consume la consola."""

    state: ReportState
    top_books: List[BookRankEntry] = []
    top_members: List[MemberRankEntry] = []
    issued_loans: List[IssuedLoanView] = []
    error: Optional[str] = None
    generated_at: Optional[datetime] = None
