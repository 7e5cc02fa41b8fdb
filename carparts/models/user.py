# carparts/models/user.py
from sqlalchemy import (
    String,
    DateTime,
    Enum,
)
from carparts.db.base import Base
from carparts.db.enums import UserRole, UserStatus
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime


class User(Base):
    """
    System operator. Non-admins must be verified to log in.
    """

    __tablename__ = "users"

    id :Mapped[str] = mapped_column(String(36), primary_key=True, comment="User UUID")

    username :Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        comment="Login name",
    )

    email :Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        comment="Login email address",
    )

    password_hash :Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash of the password",
    )

    role :Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.user,
        comment="admin or user",
    )

    status :Mapped[UserStatus] = mapped_column(
        Enum(UserStatus, name="user_status"),
        nullable=False,
        default=UserStatus.pending,
        comment="Verification status, changed by an admin only",
    )

    created_at :Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.now,
        nullable=False,
        comment="Account creation timestamp",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username} role={self.role.value}>"
