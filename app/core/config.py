# app/core/config.py
import os
from typing import ClassVar, Optional
from pydantic import BaseModel, Field

from app.core.qr_codec import QRCodecConfig

def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}

def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    return int(raw) if raw and raw.strip() else None

def _default_database_url() -> str:
    data_dir = os.path.abspath(os.getenv("DATA_DIR", "./data"))
    os.makedirs(data_dir, exist_ok=True)
    return os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(data_dir, 'attendance.db')}")

class Settings(BaseModel):
    # Constante (não vira campo Pydantic)
    DATA_DIR: ClassVar[str] = os.path.abspath(os.getenv("DATA_DIR", "./data"))

    DATABASE_URL: str = Field(default_factory=_default_database_url)
    SECRET_KEY: str = Field(default_factory=lambda: os.getenv("SECRET_KEY", "CHANGE_ME_SUPER_SECRET"))
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default_factory=lambda: int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30")))
    LOG_LEVEL: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(default_factory=lambda: _env_bool("RUN_MIGRATIONS_ON_STARTUP", True))

    # QR rotativo: a chave do envelope é do sistema, nunca o segredo da sessão
    QR_ENCRYPTION_KEY: str = Field(default_factory=lambda: os.getenv("QR_ENCRYPTION_KEY", "CHANGE_ME_QR_ENCRYPTION_KEY"))
    QR_ROTATION_SECONDS: int = Field(default_factory=lambda: int(os.getenv("QR_ROTATION_SECONDS", "10")))
    QR_MAX_AGE_SECONDS: Optional[int] = Field(default_factory=lambda: _env_int("QR_MAX_AGE_SECONDS"))
    QR_TOLERANCE_STEPS: int = Field(default_factory=lambda: int(os.getenv("QR_TOLERANCE_STEPS", "1")))

    # política de presença
    GEOLOCATION_RADIUS_METERS: float = Field(default_factory=lambda: float(os.getenv("GEOLOCATION_RADIUS_METERS", "100")))
    REQUIRE_GEOLOCATION: bool = Field(default_factory=lambda: _env_bool("REQUIRE_GEOLOCATION", False))
    LATE_THRESHOLD_MINUTES: int = Field(default_factory=lambda: int(os.getenv("LATE_THRESHOLD_MINUTES", "15")))
    AUTO_END_SESSIONS: bool = Field(default_factory=lambda: _env_bool("AUTO_END_SESSIONS", True))
    AUTO_END_HOURS: int = Field(default_factory=lambda: int(os.getenv("AUTO_END_HOURS", "4")))

    def qr_codec_config(self) -> QRCodecConfig:
        return QRCodecConfig(
            encryption_key=self.QR_ENCRYPTION_KEY,
            rotation_seconds=self.QR_ROTATION_SECONDS,
            max_age_seconds=self.QR_MAX_AGE_SECONDS,
            tolerance_steps=self.QR_TOLERANCE_STEPS,
        )

settings = Settings()
