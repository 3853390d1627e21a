"""
UsersService - account registration, login and lookups.
"""

import logging
from typing import List
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, ForbiddenError, NotFoundError, UnauthorizedError
from app.modules.users.auth import AuthService
from .models import Role, User
from .schemas import (
    LoginRequest,
    LoginResponse,
    TokenResponse,
    UpdateUserDto,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
)

logger = logging.getLogger(__name__)


class UsersService:
    """
    Users service.
    All methods use async/await and a caller-provided session.
    """

    @staticmethod
    def _token_for(user: User) -> TokenResponse:
        return TokenResponse(
            access_token=AuthService.create_token_for(user.id, user.username, user.role.value),
            token_type="bearer",
        )

    @staticmethod
    async def create(
        db: AsyncSession, create_dto: RegisterRequest, role: Role = Role.USER
    ) -> RegisterResponse:
        """
        Create a new user. Public registration always yields a USER account.
        """
        existing_user = await db.execute(
            select(User).where(User.username == create_dto.username)
        )
        if existing_user.scalars().first():
            raise ConflictError("User already exists with this username")

        user = User(
            username=create_dto.username,
            password=AuthService.get_password_hash(create_dto.password),
            name=create_dto.name,
            role=role,
            contact_info=create_dto.contact_info,
        )
        db.add(user)
        await db.flush()
        await db.refresh(user)
        logger.info("Registered user %s (%s)", user.id, role.value)

        return RegisterResponse(
            user=UserResponse.model_validate(user),
            token=UsersService._token_for(user),
        )

    @staticmethod
    async def login(db: AsyncSession, login_dto: LoginRequest) -> LoginResponse:
        """
        Login a user. Banned accounts are refused.
        """
        user = await db.scalar(
            select(User).where(User.username == login_dto.username, User.deleted_at.is_(None))
        )
        if not user:
            raise NotFoundError("User", login_dto.username)
        if not AuthService.verify_password(login_dto.password, user.password):
            raise UnauthorizedError("Invalid password")
        if user.is_banned:
            raise ForbiddenError("Your account has been banned")

        return LoginResponse(
            user=UserResponse.model_validate(user),
            token=UsersService._token_for(user),
        )

    @staticmethod
    async def find_one(db: AsyncSession, user_id: int) -> User:
        """
        Find a single user by id where deleted_at is null.

        Raises:
            NotFoundError: If user not found or is soft-deleted
        """
        result = await db.execute(
            select(User).where(User.id == user_id, User.deleted_at.is_(None))
        )
        user = result.scalar_one_or_none()

        if not user:
            raise NotFoundError("User", user_id)

        return user

    @staticmethod
    async def find_by_role(db: AsyncSession, roles: List[Role]) -> List[User]:
        result = await db.execute(
            select(User)
            .where(User.role.in_(roles), User.deleted_at.is_(None))
            .order_by(User.id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def update(db: AsyncSession, user_id: int, update_dto: UpdateUserDto) -> User:
        """Update the caller's own name / contact info."""
        user = await UsersService.find_one(db, user_id)
        for key, value in update_dto.model_dump(exclude_unset=True).items():
            setattr(user, key, value)
        await db.flush()
        await db.refresh(user)
        return user

    @staticmethod
    async def request_verification(db: AsyncSession, user_id: int) -> User:
        """
        Ask an admin to verify the caller as an alumnus.

        Raises:
            ForbiddenError: If the user is banned
            ConflictError: If the user is already verified or already waiting for review
        """
        user = await UsersService.find_one(db, user_id)
        if user.is_banned:
            raise ForbiddenError("Your account has been banned")

        result = await db.execute(
            update(User)
            .where(
                User.id == user_id,
                User.alumni_verified.is_(False),
                User.verification_requested.is_(False),
            )
            .values(verification_requested=True)
        )
        await db.refresh(user)
        if result.rowcount == 0:
            if user.alumni_verified:
                raise ConflictError("You are already verified as an alumnus")
            raise ConflictError("Verification request already submitted. Please wait for admin approval.")

        await db.commit()
        logger.info("User %s requested alumni verification", user_id)
        return user
