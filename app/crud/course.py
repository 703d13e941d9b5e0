# app/crud/course.py
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import select
from app.crud.base import CRUDBase
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.schemas.course import CourseCreate, CourseUpdate

class CRUDCourse(CRUDBase[Course]):
    def get_by_code(self, db: Session, code: str) -> Optional[Course]:
        return db.execute(select(Course).where(Course.code == code)).scalar_one_or_none()

    def list(self, db: Session, *, professor_id: Optional[int] = None, student_id: Optional[int] = None) -> List[Course]:
        stmt = select(Course)
        if professor_id is not None:
            stmt = stmt.where(Course.professor_id == professor_id)
        if student_id is not None:
            stmt = stmt.join(Enrollment, Enrollment.course_id == Course.id).where(
                Enrollment.student_id == student_id, Enrollment.active.is_(True)
            )
        return list(db.scalars(stmt.order_by(Course.code)).all())

    def create(self, db: Session, obj_in: CourseCreate) -> Course:
        course = Course(**obj_in.model_dump())
        db.add(course); db.commit(); db.refresh(course)
        return course

    def update(self, db: Session, course: Course, obj_in: CourseUpdate) -> Course:
        for f, v in obj_in.model_dump(exclude_unset=True).items():
            setattr(course, f, v)
        db.add(course); db.commit(); db.refresh(course)
        return course

    def remove(self, db: Session, course: Course) -> None:
        db.delete(course); db.commit()

    def enrollments(self, db: Session, course_id: int) -> List[Enrollment]:
        stmt = select(Enrollment).where(Enrollment.course_id == course_id).order_by(Enrollment.student_id)
        return list(db.scalars(stmt).all())

    def set_enrollments(self, db: Session, course: Course, student_ids: List[int]) -> List[Enrollment]:
        """Deixa matriculados exatamente student_ids (reativa quem já tinha linha)."""
        wanted = set(student_ids)
        current = {e.student_id: e for e in self.enrollments(db, course.id)}
        for sid, enr in current.items():
            if sid not in wanted:
                db.delete(enr)
            elif not enr.active:
                enr.active = True
                db.add(enr)
        for sid in wanted - current.keys():
            db.add(Enrollment(student_id=sid, course_id=course.id, active=True))
        db.commit()
        return self.enrollments(db, course.id)

course_crud = CRUDCourse(Course)
