# app/services/attendance.py
"""
Registro de presença a partir de um scan do QR rotativo.

O codec só diz se o envelope é autêntico, recente e bate com o segredo de
uma sessão. O resto (sessão ativa, matrícula, já marcado, geofence,
atraso) é política daqui.
"""
from __future__ import annotations

import logging
import datetime as dt
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import Settings, settings as default_settings
from app.core.qr_codec import QRCodec, VerifyReason, VerifyResult, DEFAULT_USER_MESSAGE
from app.core.timeutil import utcnow, as_utc
from app.crud.attendance import attendance_crud
from app.crud.class_session import class_session_crud
from app.models.attendance import AttendanceRecord, AttendanceStatus
from app.models.class_session import ClassSession
from app.models.enrollment import Enrollment
from app.models.user import User
from app.services.geo import distance_meters

log = logging.getLogger(__name__)


class AttendanceError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400, reason: Optional[VerifyReason] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        # motivo tipado do codec, só para log/métricas do lado do servidor
        self.reason = reason


@dataclass
class ScanOutcome:
    record: AttendanceRecord
    session: ClassSession
    minutes_late: int


def _reject(result: VerifyResult, session_id: Optional[str]) -> AttendanceError:
    reason = result.reason
    if reason is VerifyReason.MALFORMED:
        log.debug("scan rejected: %s", reason.value)
    else:
        log.info("scan rejected: %s session=%s", reason.value if reason else None, session_id)
    code = "QR_EXPIRED" if reason is VerifyReason.EXPIRED else "INVALID_QR"
    return AttendanceError(code, result.user_message or DEFAULT_USER_MESSAGE, reason=reason)


def _resolve_session(db: Session, codec: QRCodec, payload: str, now: dt.datetime, cfg: Settings) -> ClassSession:
    opened = codec.open(payload)
    if opened is None:
        raise _reject(VerifyResult.fail(VerifyReason.MALFORMED), None)

    # o sid só é legível após decifrar com a chave do sistema: escolhe um único segredo
    cs = class_session_crud.get_active(db, opened.session_id)
    if cs is None:
        raise _reject(VerifyResult.fail(VerifyReason.CODE_MISMATCH, opened), opened.session_id)
    if cfg.AUTO_END_SESSIONS and class_session_crud.end_if_stale(db, cs, max_hours=cfg.AUTO_END_HOURS, now=now):
        raise _reject(VerifyResult.fail(VerifyReason.CODE_MISMATCH, opened), cs.id)

    result = codec.verify(payload, cs.qr_secret, now)
    if not result.valid:
        raise _reject(result, cs.id)
    if result.session_id != cs.id:
        raise _reject(VerifyResult.fail(VerifyReason.SESSION_ID_MISMATCH), cs.id)
    return cs


def _check_location(
    cs: ClassSession,
    latitude: Optional[float],
    longitude: Optional[float],
    cfg: Settings,
) -> None:
    if cs.latitude is None or cs.longitude is None:
        return
    if latitude is None or longitude is None:
        if cfg.REQUIRE_GEOLOCATION:
            raise AttendanceError("LOCATION_REQUIRED", "Location is required for this session.")
        return
    distance = distance_meters(cs.latitude, cs.longitude, latitude, longitude)
    if distance > cfg.GEOLOCATION_RADIUS_METERS:
        raise AttendanceError("TOO_FAR", f"You are too far from the classroom ({round(distance)}m).")


def record_scan(
    db: Session,
    codec: QRCodec,
    student: User,
    payload: str,
    *,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    device_info: Optional[str] = None,
    now: Optional[dt.datetime] = None,
    cfg: Optional[Settings] = None,
) -> ScanOutcome:
    cfg = cfg or default_settings
    now = now or utcnow()

    cs = _resolve_session(db, codec, payload, now, cfg)

    enrolled = db.execute(
        select(Enrollment.id).where(
            Enrollment.student_id == student.id,
            Enrollment.course_id == cs.course_id,
            Enrollment.active.is_(True),
        )
    ).scalar_one_or_none()
    if not enrolled:
        raise AttendanceError("NOT_ENROLLED", "You are not enrolled in this course.", 403)

    if attendance_crud.get_for(db, session_id=cs.id, student_id=student.id):
        raise AttendanceError("ALREADY_MARKED", "Attendance already recorded for this session.", 409)

    _check_location(cs, latitude, longitude, cfg)

    minutes_late = max(0, int((now - as_utc(cs.started_at)).total_seconds() // 60))
    status = AttendanceStatus.late if minutes_late > cfg.LATE_THRESHOLD_MINUTES else AttendanceStatus.present

    record = AttendanceRecord(
        session_id=cs.id,
        student_id=student.id,
        status=status,
        marked_at=now,
        latitude=latitude,
        longitude=longitude,
        device_info=device_info,
    )
    db.add(record); db.commit(); db.refresh(record)
    log.info("attendance recorded session=%s student=%s status=%s", cs.id, student.id, status.value)
    return ScanOutcome(record=record, session=cs, minutes_late=minutes_late)
