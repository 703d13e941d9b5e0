# app/api/v1/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.tokens import create_access_token
from app.core.security_password import verify_and_maybe_upgrade
from app.crud.user import user_crud, normalize_email
from app.schemas.token import LoginIn, Token

router = APIRouter()

@router.post("/login", response_model=Token)
def login(body: LoginIn, db: Session = Depends(get_db)):
    email = normalize_email(body.email)
    if not email or not body.password:
        raise HTTPException(status_code=400, detail="Email and password are required.")

    user = user_crud.get_by_email(db, email)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials.")

    ok, new_hash = verify_and_maybe_upgrade(body.password, user.hashed_password)
    if not ok:
        raise HTTPException(status_code=401, detail="Invalid credentials.")
    if new_hash:
        user.hashed_password = new_hash
        db.add(user); db.commit()

    return {
        "access_token": create_access_token(sub=str(user.id), role=user.role.value),
        "token_type": "bearer",
        "user": {"id": user.id, "name": user.name, "email": user.email, "role": user.role.value},
    }
