# app/schemas/course.py
from __future__ import annotations
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

class CourseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=1, max_length=20)
    professor_id: int
    description: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

class CourseUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    code: Optional[str] = Field(default=None, min_length=1, max_length=20)
    professor_id: Optional[int] = None
    description: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

class CourseOut(BaseModel):
    id: int
    name: str
    code: str
    professor_id: int
    description: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    model_config = {"from_attributes": True}

class EnrollmentSet(BaseModel):
    # substitui o conjunto de alunos matriculados
    student_ids: List[int] = Field(default_factory=list)

class EnrollmentOut(BaseModel):
    id: int
    student_id: int
    course_id: int
    active: bool
    enrolled_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
