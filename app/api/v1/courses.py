# app/api/v1/courses.py
from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.rbac import require_roles, ROLE_ADMIN, ROLE_PROFESSOR, ROLE_STUDENT
from app.crud.course import course_crud
from app.models.course import Course
from app.models.user import User, UserRole
from app.schemas.course import CourseCreate, CourseUpdate, CourseOut, EnrollmentSet, EnrollmentOut

# /courses: cursos do próprio usuário
router = APIRouter()
# /admin/courses: cadastro e matrículas
admin_router = APIRouter()

def _course_or_404(db: Session, course_id: int) -> Course:
    c = course_crud.get(db, course_id)
    if not c:
        raise HTTPException(404, "Course not found")
    return c

def _ensure_professor(db: Session, user_id: int) -> None:
    u = db.get(User, user_id)
    if not u or u.role != UserRole.professor:
        raise HTTPException(422, detail="professor_id must reference a professor")

def _ensure_unique_code(db: Session, code: str, exclude_id: int | None = None) -> None:
    c = course_crud.get_by_code(db, code)
    if c and c.id != exclude_id:
        raise HTTPException(409, detail="Course code already in use")

@router.get("/", response_model=List[CourseOut])
def my_courses(
    db: Session = Depends(get_db),
    user: User = Depends(require_roles(ROLE_ADMIN, ROLE_PROFESSOR, ROLE_STUDENT)),
):
    if user.role == ROLE_PROFESSOR:
        return course_crud.list(db, professor_id=user.id)
    if user.role == ROLE_STUDENT:
        return course_crud.list(db, student_id=user.id)
    return course_crud.list(db)

@admin_router.get("/", response_model=List[CourseOut])
def list_courses(db: Session = Depends(get_db), _: User = Depends(require_roles(ROLE_ADMIN))):
    return course_crud.list(db)

@admin_router.post("/", response_model=CourseOut, status_code=201)
def create_course(
    body: CourseCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(ROLE_ADMIN)),
):
    _ensure_professor(db, body.professor_id)
    _ensure_unique_code(db, body.code)
    return course_crud.create(db, body)

@admin_router.patch("/{course_id}", response_model=CourseOut)
def update_course(
    course_id: int,
    body: CourseUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(ROLE_ADMIN)),
):
    c = _course_or_404(db, course_id)
    if body.professor_id is not None:
        _ensure_professor(db, body.professor_id)
    if body.code is not None:
        _ensure_unique_code(db, body.code, exclude_id=c.id)
    return course_crud.update(db, c, body)

@admin_router.delete("/{course_id}", status_code=204)
def delete_course(
    course_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(ROLE_ADMIN)),
):
    course_crud.remove(db, _course_or_404(db, course_id))
    return None

@admin_router.get("/{course_id}/enrollments", response_model=List[EnrollmentOut])
def list_enrollments(
    course_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(ROLE_ADMIN)),
):
    c = _course_or_404(db, course_id)
    return course_crud.enrollments(db, c.id)

@admin_router.put("/{course_id}/enrollments", response_model=List[EnrollmentOut])
def replace_enrollments(
    course_id: int,
    body: EnrollmentSet,
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(ROLE_ADMIN)),
):
    c = _course_or_404(db, course_id)
    wanted = set(body.student_ids)
    found = set(db.scalars(
        select(User.id).where(User.id.in_(wanted), User.role == UserRole.student)
    ).all()) if wanted else set()
    missing = sorted(wanted - found)
    if missing:
        raise HTTPException(422, detail={"message": "Unknown or non-student ids", "student_ids": missing})
    return course_crud.set_enrollments(db, c, sorted(wanted))
