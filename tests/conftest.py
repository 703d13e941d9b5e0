import os

# precisa vir antes de qualquer import de app.*
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("QR_ENCRYPTION_KEY", "test-qr-encryption-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.api.deps import get_codec, get_db
from app.core.qr_codec import QRCodec, QRCodecConfig
from app.core.security_password import hash_password
from app.core.tokens import create_access_token
from app.db.base import Base
from app.main import api
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.user import User, UserRole

CLASSROOM = (-12.0464, -77.0428)


@pytest.fixture(scope="session")
def codec():
    return QRCodec(QRCodecConfig(encryption_key="test-qr-encryption-key"))


@pytest.fixture()
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def client(db, codec):
    def _get_db():
        yield db

    api.dependency_overrides[get_db] = _get_db
    api.dependency_overrides[get_codec] = lambda: codec
    try:
        yield TestClient(api)
    finally:
        api.dependency_overrides.clear()


def _user(db, email, role, password=None):
    u = User(
        email=email,
        name=email.split("@")[0].title(),
        role=role,
        hashed_password=hash_password(password) if password else None,
    )
    db.add(u); db.commit(); db.refresh(u)
    return u


@pytest.fixture()
def professor(db):
    return _user(db, "prof@uni.edu", UserRole.professor, password="prof-pass-123")


@pytest.fixture()
def other_professor(db):
    return _user(db, "other.prof@uni.edu", UserRole.professor)


@pytest.fixture()
def student(db):
    return _user(db, "ana@uni.edu", UserRole.student)


@pytest.fixture()
def outsider(db):
    return _user(db, "bruno@uni.edu", UserRole.student)


@pytest.fixture()
def admin(db):
    return _user(db, "admin@uni.edu", UserRole.admin)


@pytest.fixture()
def course(db, professor, student):
    c = Course(name="Redes", code="RED-101", professor_id=professor.id,
               latitude=CLASSROOM[0], longitude=CLASSROOM[1])
    db.add(c); db.commit(); db.refresh(c)
    db.add(Enrollment(student_id=student.id, course_id=c.id, active=True))
    db.commit()
    return c


@pytest.fixture()
def auth():
    def _headers(user):
        token = create_access_token(sub=str(user.id), role=user.role.value)
        return {"Authorization": f"Bearer {token}"}
    return _headers
