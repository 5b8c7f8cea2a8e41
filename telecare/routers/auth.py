from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from telecare.core.database import get_db
from telecare.schemas.auth import RegisterRequest, LoginRequest, TokenResponse
from telecare.services.auth_service import AuthService
from telecare.dependencies.rate_limit import rate_limit

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit),
):
    """
    Create a patient or doctor account
    - Doctors must send their professional fields
    - Returns a bearer token for the new account
    """
    return AuthService.register(db, request.model_dump())


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit),
):
    """Email/password login"""
    return AuthService.login(db, request.email, request.password)
