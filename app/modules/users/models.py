import enum
from sqlalchemy import Boolean, Integer, String, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from typing import Optional

from app.core.db.base import BaseModel


class Role(str, enum.Enum):
    """User role enum"""

    ADMIN = "ADMIN"
    USER = "USER"


class User(BaseModel):
    """
    User model.
    Extends BaseModel which provides: id, created_at, updated_at, deleted_at

    Restriction and ban are account-level flags. They hide the user's
    biodata from other users but never touch the biodata's own status.
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )

    password: Mapped[str] = mapped_column(String(255), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[Role] = mapped_column(
        SQLEnum(
            Role,
            name="users_role_enum",
            native_enum=False,
        ),
        nullable=False,
        default=Role.USER,
        server_default=Role.USER.value,
    )

    contact_info: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, default=None
    )

    is_restricted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0", index=True
    )

    is_banned: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0", index=True
    )

    has_profile: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0"
    )

    credits: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )

    # Alumni without a university address ask an admin to vouch for them
    alumni_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0"
    )

    verification_requested: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0", index=True
    )

    def __repr__(self) -> str:
        return (
            f"<User(id={self.id}, username='{self.username}', role={self.role.value})>"
        )
