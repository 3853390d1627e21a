"""Users module"""

from .models import User, Role
from .service import UsersService
from .schemas import UpdateUserDto, UserResponse
from .router import router

__all__ = ["User", "Role", "UsersService", "UpdateUserDto", "UserResponse", "router"]
