import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from app.db.session import Base
from sqlalchemy.sql import func


def _new_id() -> str:
    return str(uuid.uuid4())


# ======================
# Enums
# ======================

class CirculationStatus(str, Enum):
    ISSUED = "issued"
    RETURNED = "returned"
    LOST = "lost"


class MembershipType(str, Enum):
    STUDENT = "student"
    STAFF = "staff"
    PUBLIC = "public"


# ======================
# Book
# ======================

class Book(Base):
    __tablename__ = "books"
    __table_args__ = (
        UniqueConstraint("isbn", name="uq_books_isbn"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    author: Mapped[str | None] = mapped_column(String(255), nullable=True)
    isbn: Mapped[str | None] = mapped_column(String(20), nullable=True)
    genre: Mapped[str | None] = mapped_column(String(100), nullable=True)
    publication_year: Mapped[int | None] = mapped_column(Integer, nullable=True)

    total_copies: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    available_copies: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    circulation: Mapped[list["Circulation"]] = relationship(
        "Circulation",
        back_populates="book",
    )


# ======================
# Member
# ======================

class Member(Base):
    __tablename__ = "members"
    __table_args__ = (
        UniqueConstraint("email", name="uq_members_email"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    membership_type: Mapped[MembershipType] = mapped_column(
        SqlEnum(MembershipType),
        nullable=False,
        default=MembershipType.PUBLIC,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    circulation: Mapped[list["Circulation"]] = relationship(
        "Circulation",
        back_populates="member",
    )


# ======================
# Circulation
# ======================

class Circulation(Base):
    __tablename__ = "circulation"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)

    book_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("books.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    member_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("members.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    status: Mapped[CirculationStatus] = mapped_column(
        SqlEnum(CirculationStatus),
        nullable=False,
        default=CirculationStatus.ISSUED,
    )

    issue_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    due_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    return_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    book: Mapped["Book"] = relationship("Book", back_populates="circulation")
    member: Mapped["Member"] = relationship("Member", back_populates="circulation")
