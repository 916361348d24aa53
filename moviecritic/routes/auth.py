from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from moviecritic.database import get_db
from moviecritic.schemas.auth import (
    UserRegister,
    UserLogin,
    UserResponse,
    ProfileUpdate,
    TokenResponse,
)
from moviecritic.services.auth_service import AuthService
from moviecritic.utils.dependencies import get_current_user
from moviecritic.models.user import User

# Define router
router = APIRouter(prefix="/api/auth", tags=["Authentication"])

# Register a new user
@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(user_data: UserRegister, db: Session = Depends(get_db)):
    """Register a new user"""
    return AuthService.register_user(db, user_data)

# Login endpoint
@router.post("/login", response_model=TokenResponse)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Login with email and password"""
    return AuthService.login_user(db, credentials)

# Get current authenticated user
@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user"""
    return current_user


@router.patch("/me", response_model=UserResponse)
def update_me(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update display name or avatar"""
    return AuthService.update_profile(db, current_user, profile)
