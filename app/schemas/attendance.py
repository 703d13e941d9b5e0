from __future__ import annotations
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field
from app.models.attendance import AttendanceStatus

class ScanIn(BaseModel):
    payload: str = Field(min_length=1, max_length=2048)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    device_info: Optional[str] = Field(default=None, max_length=500)

class ScanOut(BaseModel):
    success: bool = True
    message: str
    status: AttendanceStatus
    session_id: str
    minutes_late: int

class StudentRef(BaseModel):
    id: int
    name: str
    email: str

    model_config = {"from_attributes": True}

class AttendanceOut(BaseModel):
    id: int
    session_id: str
    student_id: int
    status: AttendanceStatus
    marked_at: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    student: Optional[StudentRef] = None

    model_config = {"from_attributes": True}

class HistoryItem(BaseModel):
    id: int
    session_id: str
    course_id: int
    course_name: str
    course_code: str
    status: AttendanceStatus
    marked_at: datetime
