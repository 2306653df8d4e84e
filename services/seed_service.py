"""
Seed Service
Idempotent startup seeding: the default admin account and the gamification catalogue.
"""

import logging
from datetime import datetime

from flask import current_app
from sqlalchemy import select, func

from models import db, User, Achievement, Badge, Reward, Challenge
from models.user import ROLE_ADMIN
from services.gamification_service import gamification_service

logger = logging.getLogger(__name__)

DEFAULT_ACHIEVEMENTS = [
    # name, description, category, criteria, target, points, difficulty
    ("First Steps", "Complete your first task", "Progress", "tasks_completed", 1, 10, 1),
    ("Task Starter", "Complete 5 tasks", "Progress", "tasks_completed", 5, 25, 1),
    ("Getting Started", "Complete 10 tasks", "Progress", "tasks_completed", 10, 50, 2),
    ("Task Master", "Complete 50 tasks", "Progress", "tasks_completed", 50, 150, 3),
    ("Creator", "Create your first task", "Creation", "tasks_created", 1, 15, 1),
    ("Organizer", "Create your first category", "Creation", "categories_created", 1, 10, 1),
    ("Streak Starter", "Stay active 3 days in a row", "Streak", "streak", 3, 30, 2),
    ("Daily Dose", "Stay active 5 days in a row", "Streak", "streak", 5, 50, 2),
    ("Streak Legend", "Stay active 30 days in a row", "Streak", "streak", 30, 300, 5),
    ("Focused", "Complete your first focus session", "Focus", "focus_sessions_completed", 1, 25, 1),
    ("Zen Master", "Complete 5 focus sessions", "Focus", "focus_sessions_completed", 5, 75, 3),
    ("Rising Star", "Reach level 5", "Level", "level", 5, 50, 3),
    ("Seasoned", "Reach level 10", "Level", "level", 10, 100, 4),
    ("Point Collector", "Earn 1000 points in total", "Progress", "points_earned", 1000, 100, 4),
]

DEFAULT_BADGES = [
    # name, description, category, rarity, tier, points, display order
    ("Early Bird", "Completed a challenge before breakfast", "Habits", "common", "bronze", 25, 1),
    ("Finisher", "Completed a weekly challenge", "Challenges", "rare", "silver", 50, 2),
    ("Deep Focus", "Completed a focus challenge", "Focus", "rare", "silver", 50, 3),
    ("Champion", "Topped the leaderboard", "Social", "epic", "gold", 100, 4),
]

DEFAULT_REWARDS = [
    # name, description, category, cost, minimum level
    ("Custom Avatar", "Unlock avatar customization options", "Customization", 100, 2),
    ("Theme Colors", "Unlock premium theme color schemes", "Customization", 150, 3),
    ("Profile Backgrounds", "Unlock profile backgrounds", "Customization", 200, 4),
    ("Ambient Soundscapes", "Focus-enhancing background audio", "Audio", 400, 8),
    ("Animated Avatars", "Unlock animated avatar options", "Premium", 500, 10),
]

DEFAULT_CHALLENGES = [
    # name, description, activity type, target, points, difficulty, reward badge
    ("Task Sprint", "Complete 5 tasks", "task_completion", 5, 50, 2, "Finisher"),
    ("Planner", "Create 3 tasks", "task_creation", 3, 20, 1, None),
    ("Focus Warrior", "Complete 2 focus sessions", "focus_session", 2, 40, 2, "Deep Focus"),
]


def seed_default_admin() -> User:
    """Create the configured admin when the database has no admin yet."""
    existing = db.session.execute(select(User).where(User.role == ROLE_ADMIN)).scalars().first()
    if existing:
        return existing

    config = current_app.config
    admin = db.session.execute(
        select(User).where(func.lower(User.email) == config['ADMIN_EMAIL'].lower())
    ).scalar_one_or_none()
    if admin is None:
        admin = User(
            username=config['ADMIN_USERNAME'],
            email=config['ADMIN_EMAIL'].lower(),
            first_name='Admin',
            last_name='User',
            active=True,
        )
        admin.set_password(config['ADMIN_PASSWORD'])
        db.session.add(admin)
    admin.role = ROLE_ADMIN
    db.session.flush()
    gamification_service.get_user_progress(admin.id)
    db.session.commit()
    logger.info(f"✅ Default admin account ready: {admin.email}")
    return admin


def _is_empty(model) -> bool:
    return (db.session.scalar(select(func.count()).select_from(model)) or 0) == 0


def seed_gamification_catalogue() -> None:
    """Insert the default achievements, badges, rewards and challenges into empty tables."""
    if _is_empty(Achievement):
        for name, description, category, criteria, target, points, difficulty in DEFAULT_ACHIEVEMENTS:
            db.session.add(Achievement(
                name=name, description=description, category=category, criteria=criteria,
                target_value=target, point_value=points, difficulty=difficulty,
            ))
        logger.info(f"Seeded {len(DEFAULT_ACHIEVEMENTS)} achievements")

    if _is_empty(Badge):
        for name, description, category, rarity, tier, points, order in DEFAULT_BADGES:
            db.session.add(Badge(
                name=name, description=description, category=category, rarity=rarity,
                tier=tier, point_value=points, display_order=order,
            ))
        logger.info(f"Seeded {len(DEFAULT_BADGES)} badges")
    db.session.flush()

    if _is_empty(Reward):
        for name, description, category, cost, level in DEFAULT_REWARDS:
            db.session.add(Reward(
                name=name, description=description, category=category,
                point_cost=cost, minimum_level=level,
            ))
        logger.info(f"Seeded {len(DEFAULT_REWARDS)} rewards")

    if _is_empty(Challenge):
        badges = {b.name: b.id for b in db.session.execute(select(Badge)).scalars()}
        for name, description, activity, target, points, difficulty, badge_name in DEFAULT_CHALLENGES:
            db.session.add(Challenge(
                name=name, description=description, activity_type=activity,
                target_count=target, point_reward=points, difficulty=difficulty,
                reward_badge_id=badges.get(badge_name), start_date=datetime(2025, 1, 1),
            ))
        logger.info(f"Seeded {len(DEFAULT_CHALLENGES)} challenges")

    db.session.commit()
