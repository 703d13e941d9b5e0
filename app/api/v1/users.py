# app/api/v1/users.py
from __future__ import annotations
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Path
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.rbac import require_roles, ROLE_ADMIN
from app.crud.user import user_crud, normalize_email
from app.models.course import Course
from app.models.user import User, UserRole
from app.schemas.user import UserCreate, UserUpdate, UserOut

router = APIRouter()

def _ensure_unique_email(db: Session, email: str, exclude_user_id: Optional[int] = None):
    u = user_crud.get_by_email(db, email)
    if u and (exclude_user_id is None or u.id != exclude_user_id):
        raise HTTPException(409, detail="E-mail já utilizado.")

def _get_or_404(db: Session, user_id: int) -> User:
    u = user_crud.get(db, user_id)
    if not u:
        raise HTTPException(404, "User not found")
    return u

@router.post("/", response_model=UserOut, status_code=201)
def create_user(
    body: UserCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(ROLE_ADMIN)),
):
    _ensure_unique_email(db, body.email)
    return user_crud.create(db, body)

@router.get("/", response_model=List[UserOut])
def list_users(
    role: Optional[UserRole] = Query(None),
    q: Optional[str] = Query(None, description="filtra por nome/email"),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(ROLE_ADMIN)),
):
    stmt = select(User)
    if role:
        stmt = stmt.where(User.role == role)
    if q:
        like = f"%{q.lower()}%"
        stmt = stmt.where((User.name.ilike(like)) | (User.email.ilike(like)))
    return db.scalars(stmt.order_by(User.id)).all()

@router.get("/{user_id}", response_model=UserOut)
def get_user(
    user_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(ROLE_ADMIN)),
):
    return _get_or_404(db, user_id)

@router.patch("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    body: UserUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(ROLE_ADMIN)),
):
    u = _get_or_404(db, user_id)
    if body.email is not None:
        _ensure_unique_email(db, normalize_email(body.email), exclude_user_id=u.id)
    return user_crud.update(db, u, body)

@router.delete("/{user_id}", status_code=204)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current: User = Depends(require_roles(ROLE_ADMIN)),
):
    u = _get_or_404(db, user_id)
    if u.id == current.id:
        raise HTTPException(400, detail="Cannot delete your own account")
    if db.scalar(select(Course.id).where(Course.professor_id == u.id).limit(1)) is not None:
        raise HTTPException(409, detail="User still teaches courses; reassign them first")
    user_crud.remove(db, u)
    return None
