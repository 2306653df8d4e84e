"""
Auth Service
Registration, credential checks and profile changes for TaskTracker users.
"""

import logging
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy import select, func, or_

from models import db, User
from models.user import ROLE_USER, VALID_ROLES
from services.gamification_service import gamification_service
from utils.auth import validate_email, validate_username, validate_password
from utils.errors import AuthenticationError, ConflictError, ValidationError
from utils.validation import optional_text

logger = logging.getLogger(__name__)


def find_user(identifier: str) -> Optional[User]:
    """Look a user up by email or username (case-insensitive)."""
    identifier = (optional_text(identifier, 'email_or_username', 255) or '').strip().lower()
    if not identifier:
        return None
    return db.session.execute(
        select(User).where(or_(func.lower(User.email) == identifier, func.lower(User.username) == identifier))
    ).scalar_one_or_none()


def _ensure_available(username: str, email: str, exclude_id: Optional[int] = None) -> None:
    stmt = select(User).where(or_(func.lower(User.username) == username.lower(), func.lower(User.email) == email))
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    existing = db.session.execute(stmt).scalars().first()
    if existing is None:
        return
    if existing.email.lower() == email:
        raise ConflictError('Email already registered')
    raise ConflictError('Username already taken')


def register_user(data: Dict, role: str = ROLE_USER) -> User:
    username = validate_username(data.get('username'))
    email = validate_email(data.get('email'))
    password = validate_password(data.get('password'))
    if role not in VALID_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(VALID_ROLES)}")
    _ensure_available(username, email)

    user = User(
        username=username,
        email=email,
        first_name=optional_text(data.get('first_name'), 'first_name', 50),
        last_name=optional_text(data.get('last_name'), 'last_name', 50),
        age_group=data.get('age_group') if data.get('age_group') in ('child', 'teen', 'adult') else 'adult',
        role=role,
        active=True,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.flush()
    gamification_service.get_user_progress(user.id)
    db.session.commit()
    logger.info(f"New user registered: {user.username} ({user.email}) role={role}")
    return user


def authenticate(identifier: str, password: str) -> User:
    user = find_user(identifier)
    if user is None or not user.check_password(optional_text(password, 'password', 255) or ''):
        logger.warning(f"Failed login attempt for '{identifier}'")
        raise AuthenticationError('Invalid credentials')
    if not user.active:
        logger.warning(f"Login attempt for inactive account {user.id}")
        raise AuthenticationError('Account is inactive')
    user.last_login = datetime.utcnow()
    db.session.commit()
    return user


def update_profile(user: User, data: Dict) -> User:
    if 'first_name' in data:
        user.first_name = optional_text(data.get('first_name'), 'first_name', 50)
    if 'last_name' in data:
        user.last_name = optional_text(data.get('last_name'), 'last_name', 50)
    if 'email' in data:
        email = validate_email(data.get('email'))
        _ensure_available(user.username, email, exclude_id=user.id)
        user.email = email
    db.session.commit()
    return user


def change_password(user: User, current_password: str, new_password: str) -> None:
    if not user.check_password(optional_text(current_password, 'current_password', 255) or ''):
        raise AuthenticationError('Current password is incorrect')
    user.set_password(validate_password(new_password))
    db.session.commit()
    logger.info(f"Password changed for user {user.id}")
