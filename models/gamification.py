"""
Gamification models: progress, point ledger, achievements, badges, rewards and challenges.
"""

from typing import Optional, TYPE_CHECKING
from datetime import datetime, date
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, DateTime, Date, Text, Boolean, ForeignKey, Index
from .base import Base

if TYPE_CHECKING:
    from .user import User


INITIAL_LEVEL_THRESHOLD = 100


class UserProgress(Base):
    """Level, points and streak state for one user."""
    __tablename__ = "user_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    user: Mapped["User"] = relationship(back_populates="progress")

    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    current_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_points_earned: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    next_level_threshold: Mapped[int] = mapped_column(Integer, default=INITIAL_LEVEL_THRESHOLD, nullable=False)

    current_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_activity_date: Mapped[Optional[date]] = mapped_column(Date)

    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'level': self.level,
            'current_points': self.current_points,
            'total_points_earned': self.total_points_earned,
            'next_level_threshold': self.next_level_threshold,
            'points_to_next_level': max(0, self.next_level_threshold - self.current_points),
            'current_streak': self.current_streak,
            'longest_streak': self.longest_streak,
            'last_activity_date': self.last_activity_date.isoformat() if self.last_activity_date else None,
        }


class PointTransaction(Base):
    __tablename__ = "point_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(32), nullable=False)  # task_completion, achievement, badge, daily_login, ...
    description: Mapped[Optional[str]] = mapped_column(String(255))
    task_id: Mapped[Optional[int]] = mapped_column(ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('ix_point_transactions_user_created', 'user_id', 'created_at'),
        Index('ix_point_transactions_user_type', 'user_id', 'transaction_type'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'points': self.points,
            'transaction_type': self.transaction_type,
            'description': self.description,
            'task_id': self.task_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class Achievement(Base):
    """
    Unlockable milestone. ``criteria`` names the metric it tracks
    (tasks_completed, streak, level, ...) and ``target_value`` the threshold.
    """
    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(32), default="Progress", nullable=False)
    criteria: Mapped[str] = mapped_column(String(64), nullable=False)
    target_value: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    point_value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    difficulty: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    icon_url: Mapped[Optional[str]] = mapped_column(String(255))
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'criteria': self.criteria,
            'target_value': self.target_value,
            'point_value': self.point_value,
            'difficulty': self.difficulty,
            'icon_url': self.icon_url,
        }


class UserAchievement(Base):
    __tablename__ = "user_achievements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    achievement_id: Mapped[int] = mapped_column(ForeignKey("achievements.id", ondelete="CASCADE"), nullable=False)
    achievement: Mapped["Achievement"] = relationship(lazy="joined")
    unlocked_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('ix_user_achievements_pair', 'user_id', 'achievement_id', unique=True),
    )

    def to_dict(self):
        data = self.achievement.to_dict() if self.achievement else {'id': self.achievement_id}
        data['unlocked_at'] = self.unlocked_at.isoformat() if self.unlocked_at else None
        return data


class Badge(Base):
    __tablename__ = "badges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(32), default="General", nullable=False)
    rarity: Mapped[str] = mapped_column(String(16), default="common", nullable=False)  # common, rare, epic, legendary
    tier: Mapped[str] = mapped_column(String(16), default="bronze", nullable=False)
    point_value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    icon_url: Mapped[Optional[str]] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'rarity': self.rarity,
            'tier': self.tier,
            'point_value': self.point_value,
            'icon_url': self.icon_url,
        }


class UserBadge(Base):
    __tablename__ = "user_badges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    badge_id: Mapped[int] = mapped_column(ForeignKey("badges.id", ondelete="CASCADE"), nullable=False)
    badge: Mapped["Badge"] = relationship(lazy="joined")
    is_displayed: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    awarded_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('ix_user_badges_pair', 'user_id', 'badge_id', unique=True),
    )

    def to_dict(self):
        data = self.badge.to_dict() if self.badge else {'id': self.badge_id}
        data.update({
            'user_badge_id': self.id,
            'is_displayed': self.is_displayed,
            'is_featured': self.is_featured,
            'awarded_at': self.awarded_at.isoformat() if self.awarded_at else None,
        })
        return data


class Reward(Base):
    __tablename__ = "rewards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(32), default="General", nullable=False)
    point_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    minimum_level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    quantity: Mapped[Optional[int]] = mapped_column(Integer)  # None = unlimited
    expiration_date: Mapped[Optional[datetime]] = mapped_column(DateTime)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category,
            'point_cost': self.point_cost,
            'minimum_level': self.minimum_level,
            'is_active': self.is_active,
            'quantity': self.quantity,
            'expiration_date': self.expiration_date.isoformat() if self.expiration_date else None,
        }


class UserReward(Base):
    __tablename__ = "user_rewards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    reward_id: Mapped[int] = mapped_column(ForeignKey("rewards.id", ondelete="CASCADE"), nullable=False)
    reward: Mapped["Reward"] = relationship(lazy="joined")
    redeemed_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    is_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    used_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    def to_dict(self):
        return {
            'id': self.id,
            'reward': self.reward.to_dict() if self.reward else None,
            'redeemed_at': self.redeemed_at.isoformat() if self.redeemed_at else None,
            'is_used': self.is_used,
            'used_at': self.used_at.isoformat() if self.used_at else None,
        }


class Challenge(Base):
    """
    Time-boxed goal. Progress is counted from activities whose type matches
    ``activity_type`` (and ``target_entity_id`` when set).
    """
    __tablename__ = "challenges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    start_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime)
    point_reward: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    activity_type: Mapped[str] = mapped_column(String(32), nullable=False)  # task_completion, focus_session, ...
    target_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    target_entity_id: Mapped[Optional[int]] = mapped_column(Integer)
    reward_badge_id: Mapped[Optional[int]] = mapped_column(ForeignKey("badges.id", ondelete="SET NULL"), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    difficulty: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'point_reward': self.point_reward,
            'activity_type': self.activity_type,
            'target_count': self.target_count,
            'target_entity_id': self.target_entity_id,
            'reward_badge_id': self.reward_badge_id,
            'is_active': self.is_active,
            'difficulty': self.difficulty,
        }


class ChallengeProgress(Base):
    __tablename__ = "challenge_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    challenge_id: Mapped[int] = mapped_column(ForeignKey("challenges.id", ondelete="CASCADE"), nullable=False)
    challenge: Mapped["Challenge"] = relationship(lazy="joined")
    current_progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    enrolled_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    __table_args__ = (
        Index('ix_challenge_progress_pair', 'user_id', 'challenge_id', unique=True),
    )

    def to_dict(self):
        data = self.challenge.to_dict() if self.challenge else {'id': self.challenge_id}
        target = self.challenge.target_count if self.challenge else 0
        data.update({
            'current_progress': self.current_progress,
            'progress_percentage': round(self.current_progress / target * 100, 1) if target else 0,
            'is_completed': self.is_completed,
            'enrolled_at': self.enrolled_at.isoformat() if self.enrolled_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
        })
        return data
