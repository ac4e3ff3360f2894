"""
FILE: nexuschain/auth/router.py
Authentication endpoints — register, login, logout, profile, password change
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from nexuschain.core.database import get_session
from nexuschain.core.dependencies import get_current_user
from nexuschain.shared.models import User
from nexuschain.shared.schemas import ResponseModel
from nexuschain.auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    UpdateProfileRequest,
    UserOut,
)
from nexuschain.auth.services import AuthService
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


# Register

@router.post("/register", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
async def register(
    req: RegisterRequest,
    session: Session = Depends(get_session),
):
    """Create an account with the given role. Returns the user and an access token."""
    result = await AuthService.register(req, session)
    return ResponseModel(success=True, message="User registered successfully", data=result.to_api())


# Login

@router.post("/login", response_model=ResponseModel)
async def login(
    credentials: LoginRequest,
    session: Session = Depends(get_session),
):
    """Authenticate with email + password. Any previously issued token is replaced."""
    result = await AuthService.login(credentials, session)
    return ResponseModel(success=True, message="Login successful", data=result.to_api())


# Logout

@router.post("/logout", response_model=ResponseModel)
async def logout(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    await AuthService.logout(current_user, session)
    return ResponseModel(success=True, message="Logged out successfully")


# Profile

@router.get("/me", response_model=ResponseModel)
async def get_me(current_user: User = Depends(get_current_user)):
    return ResponseModel(success=True, data=UserOut.model_validate(current_user).to_api())


@router.put("/me", response_model=ResponseModel)
async def update_me(
    req: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Partial update of name, company, phone and wallet address."""
    user = await AuthService.update_profile(current_user, req, session)
    return ResponseModel(success=True, message="Profile updated", data=user.to_api())


@router.post("/change-password", response_model=ResponseModel)
async def change_password(
    req: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Change password. The current token is revoked; log in again afterwards."""
    await AuthService.change_password(current_user, req, session)
    return ResponseModel(success=True, message="Password changed. Please log in again.")
