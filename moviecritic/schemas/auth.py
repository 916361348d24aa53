from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict
from datetime import datetime
from typing import Optional
import re


def ensure_password_strength(password: str) -> str:
    """Validate password complexity requirements."""
    if len(password.encode('utf-8')) > 72:
        raise ValueError('Password cannot be longer than 72 bytes')
    if not re.search(r'[A-Z]', password):
        raise ValueError('Password must contain uppercase letter')
    if not re.search(r'[a-z]', password):
        raise ValueError('Password must contain lowercase letter')
    if not re.search(r'[0-9]', password):
        raise ValueError('Password must contain digit')
    return password


# Schema for user registration
class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=2, max_length=255)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return ensure_password_strength(v)


# Schema for user login
class UserLogin(BaseModel):
    email: EmailStr
    password: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    avatar: Optional[str] = Field(None, max_length=500)


# Schema for user response
class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    avatar: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
