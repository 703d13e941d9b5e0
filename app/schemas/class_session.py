from __future__ import annotations
from typing import Optional
from datetime import datetime
from pydantic import BaseModel

class SessionStart(BaseModel):
    course_id: int
    latitude: Optional[float] = None
    longitude: Optional[float] = None

class ClassSessionOut(BaseModel):
    # qr_secret fica de fora de propósito
    id: str
    course_id: int
    professor_id: int
    started_at: datetime
    ended_at: Optional[datetime] = None
    is_active: bool
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    model_config = {"from_attributes": True}

class QROut(BaseModel):
    session_id: str
    payload: str
    rotation_seconds: int
    expires_in: float
    image: Optional[str] = None
