"""
Category Service
User-scoped CRUD, search and statistics for task categories.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import select, func, or_, update, case

from models import db, Category, TaskItem
from services.gamification_service import gamification_service
from utils.errors import NotFoundError, ConflictError
from utils.validation import require_text, optional_text

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 255


def get_categories(user_id: int) -> List[Category]:
    return list(db.session.execute(
        select(Category).where(Category.user_id == user_id).order_by(Category.name)
    ).scalars())


def get_category(user_id: int, category_id: int) -> Category:
    """Return the user's category; another user's category is reported as missing."""
    category = db.session.get(Category, category_id)
    if category is None or category.user_id != user_id:
        raise NotFoundError('Category not found')
    return category


def _ensure_unique_name(user_id: int, name: str, exclude_id: Optional[int] = None) -> None:
    stmt = select(Category.id).where(Category.user_id == user_id, func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    if db.session.execute(stmt).first():
        raise ConflictError(f"Category '{name}' already exists")


def create_category(user_id: int, data: Dict) -> Category:
    name = require_text(data.get('name'), 'name', NAME_MAX_LENGTH)
    _ensure_unique_name(user_id, name)

    category = Category(
        user_id=user_id,
        name=name,
        description=optional_text(data.get('description'), 'description', DESCRIPTION_MAX_LENGTH),
        color=optional_text(data.get('color'), 'color', 16),
    )
    db.session.add(category)
    db.session.flush()
    gamification_service.on_category_created(user_id, category)
    db.session.commit()
    logger.info(f"Category created: {category.id} '{category.name}' for user {user_id}")
    return category


def update_category(user_id: int, category_id: int, data: Dict) -> Category:
    category = get_category(user_id, category_id)
    if 'name' in data:
        name = require_text(data.get('name'), 'name', NAME_MAX_LENGTH)
        _ensure_unique_name(user_id, name, exclude_id=category.id)
        category.name = name
    if 'description' in data:
        category.description = optional_text(data.get('description'), 'description', DESCRIPTION_MAX_LENGTH)
    if 'color' in data:
        category.color = optional_text(data.get('color'), 'color', 16)
    db.session.commit()
    return category


def delete_category(user_id: int, category_id: int) -> None:
    """Delete a category; its tasks stay but become uncategorised."""
    category = get_category(user_id, category_id)
    db.session.execute(
        update(TaskItem).where(TaskItem.category_id == category.id).values(category_id=None)
    )
    db.session.delete(category)
    db.session.commit()
    logger.info(f"Category deleted: {category_id} for user {user_id}")


def get_category_tasks(user_id: int, category_id: int) -> List[TaskItem]:
    category = get_category(user_id, category_id)
    return list(db.session.execute(
        select(TaskItem)
        .where(TaskItem.user_id == user_id, TaskItem.category_id == category.id)
        .order_by(TaskItem.created_at.desc())
    ).scalars())


def get_category_task_count(user_id: int, category_id: int) -> int:
    category = get_category(user_id, category_id)
    return db.session.scalar(
        select(func.count(TaskItem.id)).where(TaskItem.user_id == user_id, TaskItem.category_id == category.id)
    ) or 0


def search_categories(user_id: int, term: str) -> List[Category]:
    term = (term or '').strip()
    stmt = select(Category).where(Category.user_id == user_id)
    if term:
        pattern = f'%{term.lower()}%'
        stmt = stmt.where(or_(
            func.lower(Category.name).like(pattern),
            func.lower(func.coalesce(Category.description, '')).like(pattern),
        ))
    return list(db.session.execute(stmt.order_by(Category.name)).scalars())


def get_category_statistics(user_id: int) -> List[Dict]:
    rows = db.session.execute(
        select(
            Category.id,
            Category.name,
            func.count(TaskItem.id),
            func.coalesce(func.sum(case((TaskItem.is_completed.is_(True), 1), else_=0)), 0),
        )
        .outerjoin(TaskItem, TaskItem.category_id == Category.id)
        .where(Category.user_id == user_id)
        .group_by(Category.id, Category.name)
        .order_by(Category.name)
    ).all()
    return [
        {
            'category_id': category_id,
            'name': name,
            'task_count': total,
            'completed_count': int(completed),
            'completion_rate': round(int(completed) / total, 4) if total else 0.0,
        }
        for category_id, name, total, completed in rows
    ]


def get_categories_paged(user_id: int, page: int = 1, page_size: int = 10):
    stmt = select(Category).where(Category.user_id == user_id).order_by(Category.name)
    return db.paginate(stmt, page=page, per_page=page_size, error_out=False)
