# app/crud/class_session.py
import logging
import datetime as dt
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import select

from app.crud.base import CRUDBase
from app.core.qr_codec import QRCodec
from app.core.timeutil import utcnow, as_utc
from app.models.class_session import ClassSession
from app.models.course import Course
from app.models.user import User

log = logging.getLogger(__name__)

class CRUDClassSession(CRUDBase[ClassSession]):
    def get_active(self, db: Session, id: str) -> Optional[ClassSession]:
        return db.execute(
            select(ClassSession).where(ClassSession.id == id, ClassSession.is_active.is_(True))
        ).scalar_one_or_none()

    def list_active(self, db: Session, *, professor_id: Optional[int] = None) -> List[ClassSession]:
        stmt = select(ClassSession).where(ClassSession.is_active.is_(True))
        if professor_id is not None:
            stmt = stmt.where(ClassSession.professor_id == professor_id)
        return list(db.scalars(stmt.order_by(ClassSession.started_at.desc())).all())

    def start(
        self,
        db: Session,
        codec: QRCodec,
        *,
        course: Course,
        professor: User,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        now: Optional[dt.datetime] = None,
    ) -> ClassSession:
        # sem coordenadas explícitas, usa as do curso
        if latitude is None or longitude is None:
            latitude, longitude = course.latitude, course.longitude
        cs = ClassSession(
            course_id=course.id,
            professor_id=professor.id,
            started_at=now or utcnow(),
            qr_secret=codec.new_secret(),
            is_active=True,
            latitude=latitude,
            longitude=longitude,
        )
        db.add(cs); db.commit(); db.refresh(cs)
        log.info("class session started id=%s course=%s professor=%s", cs.id, course.id, professor.id)
        return cs

    def end(self, db: Session, cs: ClassSession, *, now: Optional[dt.datetime] = None) -> ClassSession:
        if not cs.is_active:
            return cs
        cs.is_active = False
        cs.ended_at = now or utcnow()
        db.add(cs); db.commit(); db.refresh(cs)
        log.info("class session ended id=%s", cs.id)
        return cs

    def current_qr(self, codec: QRCodec, cs: ClassSession, *, now: Optional[dt.datetime] = None) -> dict:
        now = now or utcnow()
        return {
            "session_id": cs.id,
            "payload": codec.issue(cs.id, cs.qr_secret, now),
            "rotation_seconds": codec.config.rotation_seconds,
            "expires_in": codec.seconds_until_rotation(now),
        }

    def end_if_stale(self, db: Session, cs: ClassSession, *, max_hours: int, now: Optional[dt.datetime] = None) -> bool:
        """Encerra a sessão se passou de max_hours. True quando ela estava vencida."""
        now = now or utcnow()
        if not cs.is_active or as_utc(cs.started_at) >= now - dt.timedelta(hours=max_hours):
            return False
        self.end(db, cs, now=now)
        return True

    def end_all(self, db: Session, *, now: Optional[dt.datetime] = None) -> int:
        now = now or utcnow()
        active = self.list_active(db)
        for cs in active:
            cs.is_active = False
            cs.ended_at = now
            db.add(cs)
        if active:
            db.commit()
        log.info("ended all active class sessions (%d)", len(active))
        return len(active)

    def expire_stale(self, db: Session, *, max_hours: int, now: Optional[dt.datetime] = None) -> int:
        """Encerra sessões ativas há mais de max_hours. Retorna quantas foram encerradas."""
        now = now or utcnow()
        cutoff = now - dt.timedelta(hours=max_hours)
        stale = [cs for cs in self.list_active(db) if as_utc(cs.started_at) < cutoff]
        for cs in stale:
            cs.is_active = False
            cs.ended_at = now
            db.add(cs)
        if stale:
            db.commit()
            log.info("auto-ended %d stale class session(s)", len(stale))
        return len(stale)

class_session_crud = CRUDClassSession(ClassSession)
