"""
Users Router - registration, login and the caller's own account.
Admin-side user management lives in the moderation module.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db.engine import get_db_util
from .service import UsersService
from .schemas import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
    UpdateUserDto,
)
from .auth import get_current_user, TokenData

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register_user(
    register_dto: RegisterRequest, db: AsyncSession = Depends(get_db_util)
):
    """Register a new user"""
    return await UsersService.create(db, register_dto)


@router.post("/login", response_model=LoginResponse)
async def login_user(login_dto: LoginRequest, db: AsyncSession = Depends(get_db_util)):
    """Login a user and receive a JWT token"""
    return await UsersService.login(db, login_dto)


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user)
):
    """
    Get current user account from JWT token.
    Requires valid authentication token in Authorization header.
    """
    return await UsersService.find_one(db, current_user.user_id)


@router.patch("/me", response_model=UserResponse)
async def update_current_user(
    update_dto: UpdateUserDto,
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user)
):
    """Update the caller's name or contact info"""
    return await UsersService.update(db, current_user.user_id, update_dto)


@router.post("/me/verification-request", response_model=UserResponse)
async def request_verification(
    db: AsyncSession = Depends(get_db_util),
    current_user: TokenData = Depends(get_current_user)
):
    """Ask an admin to verify the caller as an alumnus"""
    return await UsersService.request_verification(db, current_user.user_id)
