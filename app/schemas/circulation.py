from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.db.models import CirculationStatus


class CirculationIssue(BaseModel):
    book_id: str
    member_id: str
    due_date: Optional[datetime] = None  # por defecto: hoy + LOAN_PERIOD_DAYS


class CirculationRead(BaseModel):
    id: str
    book_id: Optional[str] = None
    member_id: Optional[str] = None
    status: CirculationStatus
    issue_date: datetime
    due_date: Optional[datetime] = None
    return_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CirculationSnapshotRow(BaseModel):
    """Fila mínima del snapshot de circulación que consumen los reportes."""

    id: str
    book_id: Optional[str] = None
    member_id: Optional[str] = None
    status: str
    due_date: Optional[datetime] = None
