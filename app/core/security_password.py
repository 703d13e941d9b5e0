# app/core/security_password.py
from __future__ import annotations
from typing import Tuple
from passlib.context import CryptContext

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__time_cost=2,
    argon2__memory_cost=19456,
    argon2__parallelism=1,
)

def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)

def verify_and_maybe_upgrade(plain: str, stored_hash: str | None) -> Tuple[bool, str | None]:
    if not stored_hash:
        return False, None
    ok, new_hash = pwd_context.verify_and_update(plain, stored_hash)
    return ok, new_hash
