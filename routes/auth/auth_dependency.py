# routes/auth/auth_dependency.py

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
import logging

from db.connection import get_db
from db.models import UserDetails, UserRole
from routes.auth.JWTSecurity import verify_token


logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> UserDetails:
    """Get current authenticated user"""
    if not credentials:
        raise _unauthorized("Authorization header missing")

    payload = verify_token(credentials.credentials)
    if not payload:
        raise _unauthorized("Invalid or expired token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token payload")

    user = db.query(UserDetails).filter(UserDetails.id == user_id).first()
    if not user:
        raise _unauthorized("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )
    return user


# Role-based access control
def require_role(*allowed_roles: UserRole):
    """
    Dependency factory restricting an endpoint to the given roles.
    Usage:
      @router.delete(..., dependencies=[Depends(require_role(UserRole.admin))])
    """
    def role_checker(
        current_user: UserDetails = Depends(get_current_user)
    ) -> UserDetails:
        if current_user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {[r.value for r in allowed_roles]}"
            )
        return current_user

    return role_checker
