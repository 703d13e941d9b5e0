# app/crud/user.py
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import select, delete
from app.crud.base import CRUDBase
from app.core.security_password import hash_password
from app.models.attendance import AttendanceRecord
from app.models.enrollment import Enrollment
from app.models.user import User
from app.schemas.user import UserCreate, UserUpdate

def normalize_email(email: str) -> str:
    return (email or "").strip().lower()

class CRUDUser(CRUDBase[User]):
    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        return db.execute(select(User).where(User.email == normalize_email(email))).scalar_one_or_none()

    def create(self, db: Session, obj_in: UserCreate) -> User:
        user = User(
            name=obj_in.name,
            email=normalize_email(obj_in.email),
            hashed_password=hash_password(obj_in.password),
            role=obj_in.role,
        )
        db.add(user); db.commit(); db.refresh(user)
        return user

    def update(self, db: Session, user: User, obj_in: UserUpdate) -> User:
        data = obj_in.model_dump(exclude_unset=True)
        if data.get("email"):
            user.email = normalize_email(data["email"])
        if data.get("name"):
            user.name = data["name"]
        if data.get("role"):
            user.role = data["role"]
        if data.get("password"):
            user.hashed_password = hash_password(data["password"])
        db.add(user); db.commit(); db.refresh(user)
        return user

    def remove(self, db: Session, user: User) -> None:
        # presença e matrículas do usuário saem junto (SQLite não aplica ON DELETE)
        db.execute(delete(AttendanceRecord).where(AttendanceRecord.student_id == user.id))
        db.execute(delete(Enrollment).where(Enrollment.student_id == user.id))
        db.delete(user); db.commit()

user_crud = CRUDUser(User)
