"""
User model for TaskTracker accounts.
"""

from typing import Optional, TYPE_CHECKING
from datetime import datetime
from flask_login import UserMixin
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, DateTime, Boolean
from werkzeug.security import generate_password_hash, check_password_hash
from .base import Base

if TYPE_CHECKING:
    from .task import TaskItem
    from .category import Category
    from .gamification import UserProgress


ROLE_USER = "user"
ROLE_ADMIN = "admin"
VALID_ROLES = (ROLE_USER, ROLE_ADMIN)


class User(UserMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[Optional[str]] = mapped_column(String(256))

    first_name: Mapped[Optional[str]] = mapped_column(String(50))
    last_name: Mapped[Optional[str]] = mapped_column(String(50))

    role: Mapped[str] = mapped_column(String(16), default=ROLE_USER, nullable=False)  # user, admin
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    age_group: Mapped[str] = mapped_column(String(16), default="adult", nullable=False)  # child, teen, adult

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime)

    tasks: Mapped[list["TaskItem"]] = relationship(
        back_populates="user",
        foreign_keys="TaskItem.user_id",
        cascade="all, delete-orphan",
    )
    categories: Mapped[list["Category"]] = relationship(back_populates="user", cascade="all, delete-orphan")
    progress: Mapped[Optional["UserProgress"]] = relationship(back_populates="user", uselist=False, cascade="all, delete-orphan")

    def __repr__(self):
        return f'<User {self.id}: {self.username}>'

    @property
    def is_active(self) -> bool:
        return self.active

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def full_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else self.username

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'full_name': self.full_name,
            'role': self.role,
            'is_admin': self.is_admin,
            'active': self.active,
            'age_group': self.age_group,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'last_login': self.last_login.isoformat() if self.last_login else None,
        }
