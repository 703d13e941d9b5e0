# app/core/qr_codec.py
"""
Rotating QR attendance proof.

The professor's screen shows an envelope that is re-issued every
``rotation_seconds``. The envelope carries ``{sid, t, ts}`` (session id,
one-time code for the current time step, issue time in epoch millis),
encrypted with AES-256-GCM under a key derived from the system-wide
``QR_ENCRYPTION_KEY``. The one-time code is an HMAC of the time step keyed
by the per-session secret, so only whoever holds that secret can produce
or check it.

Wire format: ``nonce.ciphertext.tag``, each segment unpadded base64url.

Issuer and verifier must use the same ``rotation_seconds``; a mismatch
silently breaks matching and is not detected here.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)

NONCE_BYTES = 12
TAG_BYTES = 16
SECRET_BYTES = 32
CODE_BYTES = 16
_KDF_SALT = b"qr-attendance/envelope-key/v1"


class VerifyReason(str, Enum):
    MALFORMED = "malformed_envelope"
    EXPIRED = "expired"
    CODE_MISMATCH = "code_mismatch"
    # produced by callers that compare the embedded sid with the session they checked
    SESSION_ID_MISMATCH = "session_id_mismatch"


USER_MESSAGES = {
    VerifyReason.EXPIRED: "code expired, scan again",
}
DEFAULT_USER_MESSAGE = "invalid or expired code"


@dataclass(frozen=True)
class QRCodecConfig:
    encryption_key: str
    rotation_seconds: int = 10
    max_age_seconds: Optional[int] = None
    tolerance_steps: int = 1

    def __post_init__(self):
        if not self.encryption_key:
            raise ValueError("encryption_key is required")
        if self.rotation_seconds <= 0:
            raise ValueError("rotation_seconds must be positive")
        if self.tolerance_steps < 0:
            raise ValueError("tolerance_steps must be >= 0")
        if self.max_age_seconds is not None and self.max_age_seconds <= 0:
            raise ValueError("max_age_seconds must be positive")

    @property
    def max_age_ms(self) -> int:
        seconds = self.max_age_seconds if self.max_age_seconds is not None else 2 * self.rotation_seconds
        return seconds * 1000


@dataclass(frozen=True)
class QRPayload:
    session_id: str
    code: str
    issued_at_ms: int


@dataclass(frozen=True)
class VerifyResult:
    valid: bool
    session_id: Optional[str] = None
    reason: Optional[VerifyReason] = None
    issued_at_ms: Optional[int] = None
    matched_step: Optional[int] = None

    @property
    def user_message(self) -> Optional[str]:
        if self.valid:
            return None
        return USER_MESSAGES.get(self.reason, DEFAULT_USER_MESSAGE)

    @classmethod
    def fail(cls, reason: VerifyReason, payload: Optional[QRPayload] = None) -> "VerifyResult":
        return cls(
            valid=False,
            reason=reason,
            session_id=payload.session_id if payload else None,
            issued_at_ms=payload.issued_at_ms if payload else None,
        )


# ---------------------------------------------------------------- helpers

def to_millis(now: datetime) -> int:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (now - _EPOCH) // _ONE_MS


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def time_step(now: datetime, rotation_seconds: int) -> int:
    """floor(unix_seconds / rotation_seconds), without float rounding."""
    return to_millis(now) // (rotation_seconds * 1000)


def one_time_code(secret: str, step: int) -> str:
    mac = hmac.new(secret.encode(), str(step).encode(), hashlib.sha256)
    return mac.hexdigest()[: CODE_BYTES * 2]


def _b64e(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64d(segment: str) -> bytes:
    padded = segment + "=" * (-len(segment) % 4)
    raw = base64.b64decode(padded, altchars=b"-_", validate=True)
    # rejects encodings that differ only in the unused trailing bits
    if _b64e(raw) != segment:
        raise ValueError("non-canonical base64")
    return raw


def _parse_payload(plaintext: bytes) -> Optional[QRPayload]:
    try:
        data = json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    sid, code, ts = data.get("sid"), data.get("t"), data.get("ts")
    if not isinstance(sid, str) or not sid:
        return None
    if not isinstance(code, str) or not code.isascii() or len(code) != CODE_BYTES * 2:
        return None
    if not isinstance(ts, int) or isinstance(ts, bool):
        return None
    return QRPayload(session_id=sid, code=code, issued_at_ms=ts)


# ------------------------------------------------------------------ codec

class QRCodec:
    """Issues and verifies rotating QR envelopes. Stateless after construction."""

    def __init__(self, config: QRCodecConfig):
        self.config = config
        kdf = Scrypt(salt=_KDF_SALT, length=32, n=2**14, r=8, p=1)
        self._aead = AESGCM(kdf.derive(config.encryption_key.encode()))

    @staticmethod
    def new_secret() -> str:
        return secrets.token_hex(SECRET_BYTES)

    def issue(self, session_id: str, secret: str, now: Optional[datetime] = None) -> str:
        if not isinstance(session_id, str) or not session_id:
            raise ValueError("session_id must be a non-empty string")
        if not isinstance(secret, str) or not secret:
            raise ValueError("secret must be a non-empty string")

        now = now or _utcnow()
        code = one_time_code(secret, time_step(now, self.config.rotation_seconds))
        plaintext = json.dumps(
            {"sid": session_id, "t": code, "ts": to_millis(now)},
            separators=(",", ":"),
        ).encode("utf-8")

        nonce = secrets.token_bytes(NONCE_BYTES)
        sealed = self._aead.encrypt(nonce, plaintext, None)
        ciphertext, tag = sealed[:-TAG_BYTES], sealed[-TAG_BYTES:]
        return ".".join((_b64e(nonce), _b64e(ciphertext), _b64e(tag)))

    def open(self, envelope: str) -> Optional[QRPayload]:
        """Authenticated decryption only. None when the envelope is not ours or was altered."""
        if not isinstance(envelope, str):
            return None
        parts = envelope.strip().split(".")
        if len(parts) != 3:
            return None
        try:
            nonce, ciphertext, tag = (_b64d(p) for p in parts)
        except (ValueError, binascii.Error):
            return None
        if len(nonce) != NONCE_BYTES or len(tag) != TAG_BYTES:
            return None
        try:
            plaintext = self._aead.decrypt(nonce, ciphertext + tag, None)
        except InvalidTag:
            return None
        return _parse_payload(plaintext)

    def verify(
        self,
        envelope: str,
        secret: str,
        now: Optional[datetime] = None,
        tolerance_steps: Optional[int] = None,
    ) -> VerifyResult:
        payload = self.open(envelope)
        if payload is None:
            return VerifyResult.fail(VerifyReason.MALFORMED)

        now = now or _utcnow()
        if abs(to_millis(now) - payload.issued_at_ms) > self.config.max_age_ms:
            return VerifyResult.fail(VerifyReason.EXPIRED, payload)

        k = self.config.tolerance_steps if tolerance_steps is None else tolerance_steps
        current = time_step(now, self.config.rotation_seconds)
        for step in range(current - k, current + k + 1):
            if hmac.compare_digest(one_time_code(secret, step), payload.code):
                return VerifyResult(
                    valid=True,
                    session_id=payload.session_id,
                    issued_at_ms=payload.issued_at_ms,
                    matched_step=step,
                )
        return VerifyResult.fail(VerifyReason.CODE_MISMATCH, payload)

    def seconds_until_rotation(self, now: Optional[datetime] = None) -> float:
        interval_ms = self.config.rotation_seconds * 1000
        return (interval_ms - to_millis(now or _utcnow()) % interval_ms) / 1000
