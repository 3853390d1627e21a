"""
Authentication and Authorization utilities for JWT-based auth.
Provides password hashing, token generation/verification, and user dependency injection.
"""

from typing import Optional, Any, Dict, List
from dataclasses import dataclass
import bcrypt
import jwt
from jwt.exceptions import PyJWTError, ExpiredSignatureError
from datetime import datetime, timedelta
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.config import config
from app.core.exceptions import ForbiddenError, UnauthorizedError
from .models import Role


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


@dataclass
class TokenData:
    """Token payload data structure with type safety"""
    user_id: int
    username: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


class AuthService:
    """
    Password hashing and token management.
    """

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against a hashed password using bcrypt.

        Args:
            plain_password: Plain text password to verify
            hashed_password: Hashed password to verify against

        Returns:
            True if password matches, False otherwise
        """
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8') if isinstance(hashed_password, str) else hashed_password
        )

    @staticmethod
    def get_password_hash(password: str) -> str:
        """
        Hash a password using bcrypt with auto-generated salt.
        """
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
        return hashed.decode('utf-8')

    @staticmethod
    def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a JWT access token with user data and expiration.

        Args:
            data: Dictionary containing user data (user_id, sub, role)
            expires_delta: Optional custom expiration time, defaults to config value

        Returns:
            Encoded JWT token as string
        """
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.utcnow() + expires_delta
        else:
            expire = datetime.utcnow() + timedelta(
                minutes=config.access_token_expire_minutes
            )
        to_encode.update({
            "exp": expire,
            "iat": datetime.utcnow(),
            "type": "access"
        })
        return jwt.encode(to_encode, config.jwt_secret, algorithm=config.jwt_algorithm)

    @staticmethod
    def create_token_for(user_id: int, username: str, role: str) -> str:
        return AuthService.create_access_token(
            {"sub": username, "user_id": user_id, "role": role}
        )

    @staticmethod
    def verify_token(token: str) -> Optional[TokenData]:
        """
        Verify and decode a JWT token.

        Returns:
            TokenData object if valid, None if invalid

        Raises:
            UnauthorizedError: If the token has expired
        """
        try:
            payload: Dict[str, Any] = jwt.decode(
                token, config.jwt_secret, algorithms=[config.jwt_algorithm]
            )
            user_id: Optional[int] = payload.get("user_id")
            username: Optional[str] = payload.get("sub")
            role: Optional[str] = payload.get("role")

            if username is None or user_id is None or role is None:
                return None

            return TokenData(user_id=user_id, username=username, role=role)
        except ExpiredSignatureError:
            raise UnauthorizedError("Token has expired")
        except PyJWTError:
            return None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenData:
    """
    Dependency to get the current authenticated user from JWT token.

    Raises:
        UnauthorizedError: If the token is missing or invalid
    """
    if credentials is None:
        raise UnauthorizedError("Authentication required")

    token_data: Optional[TokenData] = AuthService.verify_token(credentials.credentials)

    if token_data is None:
        raise UnauthorizedError("Invalid authentication credentials")

    return token_data


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[TokenData]:
    """Like get_current_user, but anonymous requests resolve to None."""
    if credentials is None:
        return None
    return AuthService.verify_token(credentials.credentials)


class RoleChecker:
    """
    Dependency class for role-based access control.
    Checks if the current user has one of the required roles.
    """

    def __init__(self, allowed_roles: List[str]) -> None:
        self.allowed_roles: List[str] = allowed_roles

    async def __call__(self, current_user: TokenData = Depends(get_current_user)) -> TokenData:
        if current_user.role not in self.allowed_roles:
            raise ForbiddenError(
                f"Operation not permitted. Required roles: {', '.join(self.allowed_roles)}"
            )
        return current_user


require_admin: RoleChecker = RoleChecker([Role.ADMIN.value])
