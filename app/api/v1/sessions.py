# app/api/v1/sessions.py
from __future__ import annotations

from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_codec
from app.core.config import settings
from app.core.qr_codec import QRCodec
from app.core.rbac import require_roles, ROLE_ADMIN, ROLE_PROFESSOR
from app.crud.attendance import attendance_crud
from app.crud.class_session import class_session_crud
from app.models.class_session import ClassSession
from app.models.course import Course
from app.models.user import User
from app.schemas.attendance import AttendanceOut
from app.schemas.class_session import ClassSessionOut, QROut, SessionStart
from app.services.qr import qr_data_url

router = APIRouter()
# /admin/sessions
admin_router = APIRouter()

def _owned_session(db: Session, session_id: str, user: User) -> ClassSession:
    cs = class_session_crud.get(db, session_id)
    if not cs:
        raise HTTPException(status_code=404, detail="Session not found")
    if user.role != ROLE_ADMIN and cs.professor_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed for this session")
    return cs

@router.get("/", response_model=List[ClassSessionOut])
def list_sessions(
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(ROLE_PROFESSOR, ROLE_ADMIN)),
):
    if settings.AUTO_END_SESSIONS:
        class_session_crud.expire_stale(db, max_hours=settings.AUTO_END_HOURS)
    professor_id = None if user.role == ROLE_ADMIN else user.id
    return class_session_crud.list_active(db, professor_id=professor_id)

@router.post("/start", response_model=ClassSessionOut, status_code=status.HTTP_201_CREATED)
def start_session(
    body: SessionStart,
    db: Session = Depends(get_db),
    codec: QRCodec = Depends(get_codec),
    user: User = Depends(require_roles(ROLE_PROFESSOR)),
):
    course = db.get(Course, body.course_id)
    if not course or course.professor_id != user.id:
        raise HTTPException(status_code=403, detail="Not allowed for this course")
    if settings.AUTO_END_SESSIONS:
        class_session_crud.expire_stale(db, max_hours=settings.AUTO_END_HOURS)
    return class_session_crud.start(
        db, codec, course=course, professor=user, latitude=body.latitude, longitude=body.longitude
    )

@router.post("/{session_id}/end", response_model=ClassSessionOut)
def end_session(
    session_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(ROLE_PROFESSOR, ROLE_ADMIN)),
):
    cs = _owned_session(db, session_id, user)
    return class_session_crud.end(db, cs)

@router.get("/{session_id}/qr", response_model=QROut)
def current_qr(
    session_id: str,
    image: bool = Query(False, description="Inclui o PNG do QR como data URL"),
    db: Session = Depends(get_db),
    codec: QRCodec = Depends(get_codec),
    user: User = Depends(require_roles(ROLE_PROFESSOR)),
):
    cs = _owned_session(db, session_id, user)
    if settings.AUTO_END_SESSIONS:
        class_session_crud.end_if_stale(db, cs, max_hours=settings.AUTO_END_HOURS)
    if not cs.is_active:
        raise HTTPException(status_code=404, detail="Session not found or inactive")
    out = class_session_crud.current_qr(codec, cs)
    if image:
        out["image"] = qr_data_url(out["payload"])
    return out

@router.get("/{session_id}/attendance", response_model=List[AttendanceOut])
def session_attendance(
    session_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(ROLE_PROFESSOR, ROLE_ADMIN)),
):
    cs = _owned_session(db, session_id, user)
    return attendance_crud.list_for_session(db, cs.id)

@admin_router.post("/end-all")
def end_all_sessions(
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(ROLE_ADMIN)),
):
    count = class_session_crud.end_all(db)
    return {"success": True, "count": count}
