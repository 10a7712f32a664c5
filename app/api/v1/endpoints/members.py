from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from app.api.v1.dependencies import get_db
from app.api.v1.dependencies_auth import get_current_user
from app.core.logging import get_logger
from app.db.models import Member
from app.schemas.member import MemberCreate, MemberRead, MemberUpdate
from app.schemas.search import SearchOption
from app.services.search_service import search_records

logger = get_logger("api.members")

router = APIRouter(
    prefix="/api/v1/members",
    tags=["members"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/", response_model=List[MemberRead])
def list_members(
    name: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    query = db.query(Member)

    if name:
        query = query.filter(Member.name.ilike(f"%{name}%"))
    if email:
        query = query.filter(Member.email.ilike(f"%{email}%"))

    return query.order_by(Member.name).offset(skip).limit(limit).all()


# ---- Selector de socios (debe ir antes de /{member_id}) ----
@router.get("/search", response_model=List[SearchOption])
def search_members(
    q: str = Query("", description="Texto a buscar en nombre o email"),
    db: Session = Depends(get_db),
):
    return search_records(db, Member, "name", ["name", "email"], q)


@router.post("/", response_model=MemberRead, status_code=status.HTTP_201_CREATED)
def create_member(
    payload: MemberCreate,
    db: Session = Depends(get_db),
):
    member = Member(
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        membership_type=payload.membership_type,
    )

    db.add(member)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )
    db.refresh(member)

    logger.info(
        "member_created",
        extra={"operation": "member_create", "resource": "member", "member_id": member.id, "status_code": 201},
    )
    return member


@router.get("/{member_id}", response_model=MemberRead)
def get_member(
    member_id: str,
    db: Session = Depends(get_db),
):
    member = db.query(Member).filter(Member.id == member_id).first()
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    return member


@router.put("/{member_id}", response_model=MemberRead)
def update_member(
    member_id: str,
    payload: MemberUpdate,
    db: Session = Depends(get_db),
):
    member = db.query(Member).filter(Member.id == member_id).first()
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(member, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )
    db.refresh(member)
    return member


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_member(
    member_id: str,
    db: Session = Depends(get_db),
):
    member = db.query(Member).filter(Member.id == member_id).first()
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")

    db.delete(member)
    db.commit()

    logger.info(
        "member_deleted",
        extra={"operation": "member_delete", "resource": "member", "member_id": member_id, "status_code": 204},
    )
    return None
