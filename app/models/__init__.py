# app/models/__init__.py
# Carrega módulos para registrar tabelas no metadata (Alembic / create_all)
from app.models.user import User, UserRole  # noqa: F401
from app.models.course import Course  # noqa: F401
from app.models.enrollment import Enrollment  # noqa: F401
from app.models.class_session import ClassSession  # noqa: F401
from app.models.attendance import AttendanceRecord, AttendanceStatus  # noqa: F401

__all__ = ["User", "UserRole", "Course", "Enrollment", "ClassSession", "AttendanceRecord", "AttendanceStatus"]
