from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from telecare.core.database import get_db
from telecare.core.security import decode_token
from telecare.models.user import User

security = HTTPBearer(auto_error=False)


def get_current_user_from_token(
    token: str,
    db: Session,
):
    """
    Verify a JWT string and return its payload with the user's current role.
    """
    payload = decode_token(token)

    if payload is None or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )

    user = db.query(User).filter(User.id == int(payload["sub"])).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    return {
        **payload,
        "sub": user.id,
        "role": user.role,
        "name": user.name,
    }


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
):
    """Verify JWT token and return current user"""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return get_current_user_from_token(credentials.credentials, db)


async def get_current_doctor(
    current_user = Depends(get_current_user),
):
    """Verify current user is a doctor"""
    if current_user.get("role") != "doctor":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only doctors can access this resource",
        )
    return current_user


async def get_current_admin(
    current_user = Depends(get_current_user),
):
    """Verify current user is an admin"""
    if current_user.get("role") != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


async def get_current_patient(
    current_user = Depends(get_current_user),
):
    """Verify current user is a patient"""
    if current_user.get("role") != "patient":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only patients can access this resource",
        )
    return current_user
