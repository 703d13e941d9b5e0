# app/crud/attendance.py
from typing import List, Optional
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import select

from app.crud.base import CRUDBase
from app.models.attendance import AttendanceRecord
from app.models.class_session import ClassSession

class CRUDAttendance(CRUDBase[AttendanceRecord]):
    def get_for(self, db: Session, *, session_id: str, student_id: int) -> Optional[AttendanceRecord]:
        return db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.session_id == session_id,
                AttendanceRecord.student_id == student_id,
            )
        ).scalar_one_or_none()

    def list_for_session(self, db: Session, session_id: str) -> List[AttendanceRecord]:
        stmt = (
            select(AttendanceRecord)
            .where(AttendanceRecord.session_id == session_id)
            .options(joinedload(AttendanceRecord.student))
            .order_by(AttendanceRecord.marked_at)
        )
        return list(db.scalars(stmt).all())

    def list_for_student(self, db: Session, student_id: int, *, limit: int = 100) -> List[AttendanceRecord]:
        stmt = (
            select(AttendanceRecord)
            .join(AttendanceRecord.session)
            .where(AttendanceRecord.student_id == student_id)
            .options(joinedload(AttendanceRecord.session).joinedload(ClassSession.course))
            .order_by(AttendanceRecord.marked_at.desc())
            .limit(limit)
        )
        return list(db.scalars(stmt).unique().all())

attendance_crud = CRUDAttendance(AttendanceRecord)
