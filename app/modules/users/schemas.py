"""
User DTOs (Data Transfer Objects)
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from .models import Role


class UpdateUserDto(BaseModel):
    """DTO for updating user information"""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    contact_info: Optional[str] = Field(None, max_length=255)

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """Response model for User entity"""

    id: int
    username: str
    name: str
    role: Role
    contact_info: Optional[str] = None
    is_restricted: bool = False
    is_banned: bool = False
    has_profile: bool = False
    credits: int = 0
    alumni_verified: bool = False
    verification_requested: bool = False
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str

    class Config:
        from_attributes = True


class LoginRequest(BaseModel):
    username: str
    password: str

    class Config:
        from_attributes = True


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=1, max_length=100)
    contact_info: Optional[str] = None

    class Config:
        from_attributes = True


class RegisterResponse(BaseModel):
    user: UserResponse
    token: TokenResponse

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    user: UserResponse
    token: TokenResponse

    class Config:
        from_attributes = True
