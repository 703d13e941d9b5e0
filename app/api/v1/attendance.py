# app/api/v1/attendance.py
from __future__ import annotations

from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_codec
from app.core.qr_codec import QRCodec
from app.core.rbac import require_roles, ROLE_STUDENT
from app.crud.attendance import attendance_crud
from app.models.attendance import AttendanceStatus
from app.models.user import User
from app.schemas.attendance import HistoryItem, ScanIn, ScanOut
from app.services.attendance import AttendanceError, record_scan

router = APIRouter()

@router.post("/scan", response_model=ScanOut)
def scan(
    body: ScanIn,
    db: Session = Depends(get_db),
    codec: QRCodec = Depends(get_codec),
    user: User = Depends(require_roles(ROLE_STUDENT)),
):
    try:
        outcome = record_scan(
            db, codec, user, body.payload,
            latitude=body.latitude,
            longitude=body.longitude,
            device_info=body.device_info,
        )
    except AttendanceError as e:
        raise HTTPException(status_code=e.status_code, detail={"code": e.code, "message": e.message})

    if outcome.record.status == AttendanceStatus.late:
        message = f"Attendance recorded (late: +{outcome.minutes_late} min)"
    else:
        message = "Attendance recorded!"
    return {
        "success": True,
        "message": message,
        "status": outcome.record.status,
        "session_id": outcome.session.id,
        "minutes_late": outcome.minutes_late,
    }

@router.get("/me", response_model=List[HistoryItem])
def my_history(
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(ROLE_STUDENT)),
):
    rows = attendance_crud.list_for_student(db, user.id, limit=limit)
    return [
        {
            "id": r.id,
            "session_id": r.session_id,
            "course_id": r.session.course.id,
            "course_name": r.session.course.name,
            "course_code": r.session.course.code,
            "status": r.status,
            "marked_at": r.marked_at,
        }
        for r in rows
    ]
