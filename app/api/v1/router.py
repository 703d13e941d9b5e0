# app/api/v1/router.py
from fastapi import APIRouter
from app.api.v1 import auth, sessions, attendance, users, courses

api_router = APIRouter()

api_router.include_router(auth.router,          prefix="/auth",           tags=["auth"])
api_router.include_router(courses.router,       prefix="/courses",        tags=["courses"])
api_router.include_router(sessions.router,      prefix="/sessions",       tags=["sessions"])
api_router.include_router(attendance.router,    prefix="/attendance",     tags=["attendance"])
api_router.include_router(users.router,         prefix="/admin/users",    tags=["admin"])
api_router.include_router(courses.admin_router, prefix="/admin/courses",  tags=["admin"])
api_router.include_router(sessions.admin_router, prefix="/admin/sessions", tags=["admin"])
