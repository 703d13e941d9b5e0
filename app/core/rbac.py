# app/core/rbac.py
from fastapi import Depends, HTTPException, status
from app.api.deps import get_current_user
from app.models.user import User, UserRole

ROLE_ADMIN = UserRole.admin
ROLE_PROFESSOR = UserRole.professor
ROLE_STUDENT = UserRole.student

def require_roles(*roles: UserRole):
    allowed = set(roles)
    def dep(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return user
    return dep
