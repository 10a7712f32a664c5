from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from app.db.models import MembershipType


class MemberCreate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    membership_type: MembershipType = MembershipType.PUBLIC


class MemberUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    membership_type: Optional[MembershipType] = None


class MemberRead(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    membership_type: MembershipType
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MemberSummary(BaseModel):
    """Campos del catálogo que usan los reportes."""

    id: Optional[str] = None
    name: str
    email: str = ""

    class Config:
        from_attributes = True
