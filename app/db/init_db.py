# app/db/init_db.py
import os
import logging
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.user import User, UserRole
from app.core.security_password import hash_password

log = logging.getLogger(__name__)

def init_db(db: Session) -> None:
    email = os.getenv("ADMIN_EMAIL", "admin@demo").strip().lower()
    admin = db.scalar(select(User).where(User.email == email))
    if not admin:
        admin = User(
            email=email,
            name="Admin Demo",
            hashed_password=hash_password(os.getenv("ADMIN_PASSWORD", "admin123")),
            role=UserRole.admin,
        )
        db.add(admin)
        db.commit()
        log.info("seeded admin user %s", email)
