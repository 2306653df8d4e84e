"""
Gamification Service
====================
Points, levels, streaks, achievements, badges, rewards, challenges,
daily check-ins and leaderboards.

Public methods called from routes commit their own transaction. The
``on_*`` hooks are called from other services in the middle of a unit of
work and leave the commit to the caller.
"""

import logging
from datetime import datetime, date, timedelta
from typing import Dict, Any, List, Optional

from flask import current_app
from sqlalchemy import select, func

from models import (
    db, User, TaskItem, Category, FocusSession, UserProgress, PointTransaction,
    Achievement, UserAchievement, Badge, UserBadge, Reward, UserReward,
    Challenge, ChallengeProgress, utc_today,
)
from models.gamification import INITIAL_LEVEL_THRESHOLD
from services import cache as cache_service
from services import notification_service
from utils.errors import ValidationError, NotFoundError, ConflictError

logger = logging.getLogger(__name__)

BASE_TASK_POINTS = 10
PRIORITY_MULTIPLIERS = {
    'low': 0.5,
    'medium': 1.0,
    'high': 1.5,
    'critical': 2.0,
}
DAILY_LOGIN_BASE_POINTS = 10
DAILY_LOGIN_STREAK_CAP = 30
LEADERBOARD_CATEGORIES = ('points', 'streak', 'tasks')
LEADERBOARD_CACHE_PREFIX = 'leaderboard:'

# Metrics an achievement's ``criteria`` can reference.
ACHIEVEMENT_METRICS = (
    'tasks_completed', 'tasks_created', 'categories_created',
    'focus_sessions_completed', 'streak', 'level', 'points_earned',
)


def level_threshold(level: int) -> int:
    """Points needed to advance past ``level``."""
    if level <= 1:
        return INITIAL_LEVEL_THRESHOLD
    return int(100 * level ** 1.5)


def _day_start(day: date) -> datetime:
    return datetime(day.year, day.month, day.day)


class GamificationService:

    # ------------------------------------------------------------------ progress

    def get_user_progress(self, user_id: int) -> UserProgress:
        """Return the user's progress row, creating the level-1 default lazily."""
        progress = db.session.execute(
            select(UserProgress).where(UserProgress.user_id == user_id)
        ).scalar_one_or_none()
        if progress is None:
            progress = UserProgress(
                user_id=user_id,
                level=1,
                current_points=0,
                total_points_earned=0,
                next_level_threshold=INITIAL_LEVEL_THRESHOLD,
                current_streak=0,
                longest_streak=0,
            )
            db.session.add(progress)
            db.session.flush()
        return progress

    def add_points(self, user_id: int, points: int, transaction_type: str,
                   description: Optional[str] = None, task_id: Optional[int] = None,
                   commit: bool = False) -> UserProgress:
        """
        Credit points, record the transaction and apply any level-ups.

        Raises ValidationError for negative amounts; spending goes through
        ``redeem_reward``.
        """
        if points < 0:
            raise ValidationError('Points cannot be negative')

        progress = self.get_user_progress(user_id)
        db.session.add(PointTransaction(
            user_id=user_id,
            points=points,
            transaction_type=transaction_type,
            description=description,
            task_id=task_id,
        ))
        progress.current_points += points
        progress.total_points_earned += points

        leveled_up = False
        while progress.current_points >= progress.next_level_threshold:
            progress.current_points -= progress.next_level_threshold
            progress.level += 1
            progress.next_level_threshold = level_threshold(progress.level)
            leveled_up = True
            logger.info(f"⬆️ User {user_id} reached level {progress.level}")
            notification_service.create_notification(
                user_id,
                title='Level up!',
                message=f'You reached level {progress.level}.',
                notification_type='level_up',
                is_important=True,
                commit=False,
            )
        db.session.flush()

        cache_service.cache.delete_prefix(LEADERBOARD_CACHE_PREFIX)

        if leveled_up:
            self.evaluate_achievements(user_id, 'level')
        self.evaluate_achievements(user_id, 'points_earned')

        if commit:
            db.session.commit()
        return progress

    def update_streak(self, user_id: int, commit: bool = False) -> UserProgress:
        """
        Record activity for today. Consecutive days extend the streak, a gap
        resets it to 1, repeat activity on the same day changes nothing.
        """
        progress = self.get_user_progress(user_id)
        today = utc_today()
        last = progress.last_activity_date

        if last == today:
            return progress

        if last == today - timedelta(days=1):
            progress.current_streak += 1
        else:
            progress.current_streak = 1

        progress.longest_streak = max(progress.longest_streak, progress.current_streak)
        progress.last_activity_date = today
        db.session.flush()

        if progress.current_streak > 1:
            self.evaluate_achievements(user_id, 'streak')
        if commit:
            db.session.commit()
        return progress

    def get_recent_transactions(self, user_id: int, limit: int = 20) -> List[PointTransaction]:
        return list(db.session.execute(
            select(PointTransaction)
            .where(PointTransaction.user_id == user_id)
            .order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
            .limit(limit)
        ).scalars())

    # -------------------------------------------------------------- task hooks

    def calculate_task_points(self, task: TaskItem) -> int:
        multiplier = PRIORITY_MULTIPLIERS.get(task.priority, 1.0)
        return max(1, round(BASE_TASK_POINTS * multiplier))

    def on_task_completed(self, user_id: int, task: TaskItem) -> int:
        """Award completion points and advance everything tied to finishing a task."""
        points = self.calculate_task_points(task)
        self.add_points(user_id, points, 'task_completion', f'Completed task: {task.title}', task_id=task.id)
        self.update_streak(user_id)
        self.process_challenge_progress(user_id, 'task_completion', task.category_id)
        self.evaluate_achievements(user_id, 'tasks_completed')
        notification_service.create_notification(
            user_id,
            title='Task completed',
            message=f'"{task.title}" completed. +{points} points',
            notification_type='task_completed',
            related_entity_type='task',
            related_entity_id=task.id,
            commit=False,
        )
        return points

    def on_task_created(self, user_id: int, task: TaskItem) -> None:
        self.process_challenge_progress(user_id, 'task_creation', task.category_id)
        self.evaluate_achievements(user_id, 'tasks_created')

    def on_category_created(self, user_id: int, category: Category) -> None:
        self.evaluate_achievements(user_id, 'categories_created')

    def on_focus_session_completed(self, user_id: int, session: FocusSession) -> int:
        points = max(1, session.duration_minutes // 5)
        self.add_points(user_id, points, 'focus_session',
                        f'Focus session: {session.duration_minutes} minutes', task_id=session.task_id)
        self.update_streak(user_id)
        self.process_challenge_progress(user_id, 'focus_session', session.task_id)
        self.evaluate_achievements(user_id, 'focus_sessions_completed')
        return points

    # ------------------------------------------------------------ achievements

    def _metric_value(self, user_id: int, metric: str) -> int:
        if metric == 'tasks_completed':
            return db.session.scalar(select(func.count(TaskItem.id)).where(
                TaskItem.user_id == user_id, TaskItem.is_completed.is_(True))) or 0
        if metric == 'tasks_created':
            return db.session.scalar(select(func.count(TaskItem.id)).where(TaskItem.user_id == user_id)) or 0
        if metric == 'categories_created':
            return db.session.scalar(select(func.count(Category.id)).where(Category.user_id == user_id)) or 0
        if metric == 'focus_sessions_completed':
            return db.session.scalar(select(func.count(FocusSession.id)).where(
                FocusSession.user_id == user_id, FocusSession.is_completed.is_(True))) or 0
        progress = self.get_user_progress(user_id)
        if metric == 'streak':
            return progress.current_streak
        if metric == 'level':
            return progress.level
        if metric == 'points_earned':
            return progress.total_points_earned
        raise ValidationError(f'Unknown achievement metric: {metric}')

    def _unlocked_ids(self, user_id: int) -> set:
        return set(db.session.execute(
            select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
        ).scalars())

    def evaluate_achievements(self, user_id: int, metric: str) -> List[Achievement]:
        """Unlock every achievement on ``metric`` whose target the user has reached."""
        candidates = list(db.session.execute(
            select(Achievement)
            .where(Achievement.criteria == metric, Achievement.is_deleted.is_(False))
            .order_by(Achievement.target_value)
        ).scalars())
        if not candidates:
            return []

        value = self._metric_value(user_id, metric)
        unlocked = []
        for achievement in candidates:
            if achievement.target_value > value:
                break
            if achievement.id in self._unlocked_ids(user_id):
                continue
            self._grant_achievement(user_id, achievement)
            unlocked.append(achievement)
        return unlocked

    def _grant_achievement(self, user_id: int, achievement: Achievement) -> UserAchievement:
        user_achievement = UserAchievement(user_id=user_id, achievement_id=achievement.id)
        db.session.add(user_achievement)
        db.session.flush()
        logger.info(f"🏆 User {user_id} unlocked achievement '{achievement.name}'")
        notification_service.create_notification(
            user_id,
            title='Achievement unlocked',
            message=f'You unlocked "{achievement.name}".',
            notification_type='achievement',
            related_entity_type='achievement',
            related_entity_id=achievement.id,
            commit=False,
        )
        if achievement.point_value > 0:
            self.add_points(user_id, achievement.point_value, 'achievement',
                            f'Achievement unlocked: {achievement.name}')
        return user_achievement

    def unlock_achievement(self, user_id: int, achievement_id: int) -> UserAchievement:
        achievement = db.session.get(Achievement, achievement_id)
        if achievement is None or achievement.is_deleted:
            raise NotFoundError('Achievement not found')
        if achievement_id in self._unlocked_ids(user_id):
            raise ConflictError('Achievement already unlocked')
        user_achievement = self._grant_achievement(user_id, achievement)
        db.session.commit()
        return user_achievement

    def get_user_achievements(self, user_id: int) -> List[UserAchievement]:
        return list(db.session.execute(
            select(UserAchievement)
            .where(UserAchievement.user_id == user_id)
            .order_by(UserAchievement.unlocked_at.desc(), UserAchievement.id.desc())
        ).scalars())

    def get_available_achievements(self, user_id: int) -> List[Achievement]:
        unlocked = self._unlocked_ids(user_id)
        achievements = db.session.execute(
            select(Achievement)
            .where(Achievement.is_deleted.is_(False))
            .order_by(Achievement.category, Achievement.name)
        ).scalars()
        return [a for a in achievements if a.id not in unlocked]

    # ------------------------------------------------------------------ badges

    def get_user_badges(self, user_id: int) -> List[UserBadge]:
        return list(db.session.execute(
            select(UserBadge)
            .where(UserBadge.user_id == user_id)
            .order_by(UserBadge.awarded_at.desc(), UserBadge.id.desc())
        ).scalars())

    def _find_user_badge(self, user_id: int, badge_id: int) -> Optional[UserBadge]:
        return db.session.execute(
            select(UserBadge).where(UserBadge.user_id == user_id, UserBadge.badge_id == badge_id)
        ).scalar_one_or_none()

    def award_badge(self, user_id: int, badge_id: int, reason: Optional[str] = None,
                    commit: bool = True) -> UserBadge:
        badge = db.session.get(Badge, badge_id)
        if badge is None or not badge.is_active:
            raise NotFoundError('Badge not found')
        if self._find_user_badge(user_id, badge_id):
            raise ConflictError('Badge already awarded')

        user_badge = UserBadge(user_id=user_id, badge_id=badge_id, is_displayed=True)
        db.session.add(user_badge)
        db.session.flush()
        if badge.point_value > 0:
            self.add_points(user_id, badge.point_value, 'badge', reason or f'Badge earned: {badge.name}')
        notification_service.create_notification(
            user_id,
            title='Badge earned',
            message=f'You earned the "{badge.name}" badge.',
            notification_type='badge',
            related_entity_type='badge',
            related_entity_id=badge.id,
            commit=False,
        )
        if commit:
            db.session.commit()
        return user_badge

    def toggle_badge_display(self, user_id: int, badge_id: int, is_displayed: bool) -> UserBadge:
        user_badge = self._find_user_badge(user_id, badge_id)
        if user_badge is None:
            raise NotFoundError('Badge not owned by user')
        user_badge.is_displayed = bool(is_displayed)
        db.session.commit()
        return user_badge

    def feature_badge(self, user_id: int, badge_id: int) -> UserBadge:
        """Only one badge can be featured at a time."""
        user_badge = self._find_user_badge(user_id, badge_id)
        if user_badge is None:
            raise NotFoundError('Badge not owned by user')
        for other in self.get_user_badges(user_id):
            other.is_featured = other.id == user_badge.id
        user_badge.is_displayed = True
        db.session.commit()
        return user_badge

    # ----------------------------------------------------------------- rewards

    def get_available_rewards(self, user_id: int) -> List[Reward]:
        progress = self.get_user_progress(user_id)
        now = datetime.utcnow()
        return list(db.session.execute(
            select(Reward)
            .where(
                Reward.is_active.is_(True),
                Reward.minimum_level <= progress.level,
                (Reward.expiration_date.is_(None)) | (Reward.expiration_date > now),
                (Reward.quantity.is_(None)) | (Reward.quantity > 0),
            )
            .order_by(Reward.point_cost, Reward.name)
        ).scalars())

    def get_user_rewards(self, user_id: int) -> List[UserReward]:
        return list(db.session.execute(
            select(UserReward)
            .where(UserReward.user_id == user_id)
            .order_by(UserReward.redeemed_at.desc(), UserReward.id.desc())
        ).scalars())

    def redeem_reward(self, user_id: int, reward_id: int) -> UserReward:
        reward = db.session.get(Reward, reward_id)
        if reward is None or not reward.is_active:
            raise NotFoundError('Reward not found')
        if reward.expiration_date and reward.expiration_date <= datetime.utcnow():
            raise ConflictError('Reward has expired')
        if reward.quantity is not None and reward.quantity <= 0:
            raise ConflictError('Reward is out of stock')

        progress = self.get_user_progress(user_id)
        if progress.level < reward.minimum_level:
            raise ValidationError(f'Reward requires level {reward.minimum_level}')
        if progress.current_points < reward.point_cost:
            raise ConflictError('Not enough points to redeem this reward')

        progress.current_points -= reward.point_cost
        db.session.add(PointTransaction(
            user_id=user_id,
            points=-reward.point_cost,
            transaction_type='reward_redemption',
            description=f'Redeemed reward: {reward.name}',
        ))
        if reward.quantity is not None:
            reward.quantity -= 1

        user_reward = UserReward(user_id=user_id, reward_id=reward.id, is_used=False)
        db.session.add(user_reward)
        db.session.commit()
        cache_service.cache.delete_prefix(LEADERBOARD_CACHE_PREFIX)
        logger.info(f"🎁 User {user_id} redeemed reward '{reward.name}' for {reward.point_cost} points")
        return user_reward

    def use_reward(self, user_id: int, user_reward_id: int) -> bool:
        """Mark a redeemed reward as used. Returns False if it was already used."""
        user_reward = db.session.get(UserReward, user_reward_id)
        if user_reward is None or user_reward.user_id != user_id:
            raise NotFoundError('Reward not found')
        if user_reward.is_used:
            return False
        user_reward.is_used = True
        user_reward.used_at = datetime.utcnow()
        db.session.commit()
        return True

    # -------------------------------------------------------------- challenges

    def _active_challenge_filter(self):
        now = datetime.utcnow()
        return (
            Challenge.is_active.is_(True),
            Challenge.start_date <= now,
            (Challenge.end_date.is_(None)) | (Challenge.end_date >= now),
        )

    def get_active_challenges(self, user_id: int) -> Dict[str, List]:
        challenges = list(db.session.execute(
            select(Challenge).where(*self._active_challenge_filter())
            .order_by(Challenge.end_date, Challenge.id)
        ).scalars())
        enrolled = {p.challenge_id: p for p in self.get_user_challenges(user_id)}
        return {
            'available': [c for c in challenges if c.id not in enrolled],
            'enrolled': [enrolled[c.id] for c in challenges if c.id in enrolled],
        }

    def get_user_challenges(self, user_id: int) -> List[ChallengeProgress]:
        return list(db.session.execute(
            select(ChallengeProgress)
            .where(ChallengeProgress.user_id == user_id)
            .order_by(ChallengeProgress.enrolled_at.desc(), ChallengeProgress.id.desc())
        ).scalars())

    def get_current_challenge(self, user_id: int) -> Optional[ChallengeProgress]:
        return db.session.execute(
            select(ChallengeProgress)
            .join(Challenge, ChallengeProgress.challenge_id == Challenge.id)
            .where(
                ChallengeProgress.user_id == user_id,
                ChallengeProgress.is_completed.is_(False),
                *self._active_challenge_filter(),
            )
            .order_by(ChallengeProgress.enrolled_at.desc(), ChallengeProgress.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def _find_progress(self, user_id: int, challenge_id: int) -> Optional[ChallengeProgress]:
        return db.session.execute(
            select(ChallengeProgress).where(
                ChallengeProgress.user_id == user_id,
                ChallengeProgress.challenge_id == challenge_id,
            )
        ).scalar_one_or_none()

    def enroll_in_challenge(self, user_id: int, challenge_id: int) -> ChallengeProgress:
        challenge = db.session.get(Challenge, challenge_id)
        if challenge is None:
            raise NotFoundError('Challenge not found')
        now = datetime.utcnow()
        if not challenge.is_active or (challenge.end_date and challenge.end_date < now):
            raise ConflictError('Challenge is not active')
        if self._find_progress(user_id, challenge_id):
            raise ConflictError('Already enrolled in this challenge')

        progress = ChallengeProgress(user_id=user_id, challenge_id=challenge_id, current_progress=0)
        db.session.add(progress)
        db.session.commit()
        logger.info(f"User {user_id} enrolled in challenge '{challenge.name}'")
        return progress

    def leave_challenge(self, user_id: int, challenge_id: int) -> None:
        progress = self._find_progress(user_id, challenge_id)
        if progress is None:
            raise NotFoundError('Not enrolled in this challenge')
        db.session.delete(progress)
        db.session.commit()

    def process_challenge_progress(self, user_id: int, activity_type: str,
                                   entity_id: Optional[int] = None) -> List[ChallengeProgress]:
        """Advance the user's open challenges that count ``activity_type``."""
        open_progress = db.session.execute(
            select(ChallengeProgress)
            .join(Challenge, ChallengeProgress.challenge_id == Challenge.id)
            .where(
                ChallengeProgress.user_id == user_id,
                ChallengeProgress.is_completed.is_(False),
                Challenge.activity_type == activity_type,
                *self._active_challenge_filter(),
            )
        ).scalars()

        completed = []
        for progress in open_progress:
            challenge = progress.challenge
            if challenge.target_entity_id is not None and challenge.target_entity_id != entity_id:
                continue
            progress.current_progress += 1
            if progress.current_progress >= challenge.target_count:
                self._complete_challenge(user_id, progress)
                completed.append(progress)
        db.session.flush()
        return completed

    def _complete_challenge(self, user_id: int, progress: ChallengeProgress) -> None:
        challenge = progress.challenge
        progress.is_completed = True
        progress.completed_at = datetime.utcnow()
        db.session.flush()
        logger.info(f"🎯 User {user_id} completed challenge '{challenge.name}'")

        if challenge.point_reward > 0:
            self.add_points(user_id, challenge.point_reward, 'challenge',
                            f'Challenge completed: {challenge.name}')
        if challenge.reward_badge_id and not self._find_user_badge(user_id, challenge.reward_badge_id):
            self.award_badge(user_id, challenge.reward_badge_id,
                             reason=f'Challenge reward: {challenge.name}', commit=False)
        notification_service.create_notification(
            user_id,
            title='Challenge completed',
            message=f'You completed "{challenge.name}".',
            notification_type='challenge',
            related_entity_type='challenge',
            related_entity_id=challenge.id,
            commit=False,
        )

    # ------------------------------------------------------------- daily login

    def _claimed_today(self, user_id: int) -> bool:
        return db.session.scalar(
            select(func.count(PointTransaction.id)).where(
                PointTransaction.user_id == user_id,
                PointTransaction.transaction_type == 'daily_login',
                PointTransaction.created_at >= _day_start(utc_today()),
            )
        ) > 0

    def _daily_login_points(self, progress: UserProgress) -> int:
        return DAILY_LOGIN_BASE_POINTS + min(progress.current_streak, DAILY_LOGIN_STREAK_CAP) * 2

    def process_daily_login(self, user_id: int) -> Dict[str, Any]:
        if self._claimed_today(user_id):
            raise ConflictError('Daily login reward already claimed today')

        progress = self.get_user_progress(user_id)
        points = self._daily_login_points(progress)
        self.add_points(user_id, points, 'daily_login', 'Daily login reward')
        self.update_streak(user_id)
        db.session.commit()
        return {
            'points_awarded': points,
            'current_streak': progress.current_streak,
            'progress': progress.to_dict(),
        }

    def get_daily_login_status(self, user_id: int) -> Dict[str, Any]:
        progress = self.get_user_progress(user_id)
        return {
            'has_claimed_today': self._claimed_today(user_id),
            'current_streak': progress.current_streak,
            'longest_streak': progress.longest_streak,
            'potential_points': self._daily_login_points(progress),
        }

    # ------------------------------------------------------------ suggestions

    def get_suggestions(self, user_id: int) -> List[Dict[str, Any]]:
        suggestions = []
        progress = self.get_user_progress(user_id)

        open_task = db.session.execute(
            select(TaskItem)
            .where(TaskItem.user_id == user_id, TaskItem.is_completed.is_(False))
            .order_by(TaskItem.due_date.is_(None), TaskItem.due_date, TaskItem.created_at)
            .limit(1)
        ).scalar_one_or_none()
        if open_task:
            suggestions.append({
                'type': 'task',
                'title': 'Complete a task',
                'description': f'Finish "{open_task.title}" for {self.calculate_task_points(open_task)} points',
                'entity_id': open_task.id,
            })

        if not self._claimed_today(user_id):
            suggestions.append({
                'type': 'login',
                'title': 'Claim your daily reward',
                'description': f'Check in today for {self._daily_login_points(progress)} points',
                'entity_id': None,
            })

        available = self.get_available_achievements(user_id)
        if available:
            easiest = min(available, key=lambda a: (a.difficulty, a.target_value))
            suggestions.append({
                'type': 'achievement',
                'title': f'Work towards "{easiest.name}"',
                'description': easiest.description or '',
                'entity_id': easiest.id,
            })

        affordable = [r for r in self.get_available_rewards(user_id) if r.point_cost <= progress.current_points]
        if affordable:
            suggestions.append({
                'type': 'reward',
                'title': 'Redeem a reward',
                'description': f'You can afford "{affordable[0].name}"',
                'entity_id': affordable[0].id,
            })

        challenges = self.get_active_challenges(user_id)
        if challenges['available']:
            challenge = challenges['available'][0]
            suggestions.append({
                'type': 'challenge',
                'title': f'Join "{challenge.name}"',
                'description': challenge.description or '',
                'entity_id': challenge.id,
            })
        return suggestions

    # ------------------------------------------------------------ stats/board

    def get_consistency_score(self, user_id: int, days: int = 30) -> float:
        """Share of the last ``days`` days with any point activity, as a percentage."""
        since = _day_start(utc_today() - timedelta(days=days - 1))
        timestamps = db.session.execute(
            select(PointTransaction.created_at).where(
                PointTransaction.user_id == user_id,
                PointTransaction.created_at >= since,
            )
        ).scalars()
        active_days = {ts.date() for ts in timestamps}
        return round(len(active_days) / days * 100, 1)

    def get_gamification_stats(self, user_id: int) -> Dict[str, Any]:
        progress = self.get_user_progress(user_id)

        category_rows = db.session.execute(
            select(Category.name, func.count(TaskItem.id))
            .join(TaskItem, TaskItem.category_id == Category.id)
            .where(TaskItem.user_id == user_id, TaskItem.is_completed.is_(True))
            .group_by(Category.name)
            .order_by(func.count(TaskItem.id).desc())
        ).all()

        return {
            'progress': progress.to_dict(),
            'completed_tasks': self._metric_value(user_id, 'tasks_completed'),
            'achievements_unlocked': len(self._unlocked_ids(user_id)),
            'badges_earned': len(self.get_user_badges(user_id)),
            'rewards_redeemed': len(self.get_user_rewards(user_id)),
            'consistency_score': self.get_consistency_score(user_id),
            'category_stats': [{'category': name, 'completed': count} for name, count in category_rows],
            'top_users': self.get_leaderboard('points', limit=5),
        }

    def get_leaderboard(self, category: str = 'points', limit: int = 10) -> List[Dict[str, Any]]:
        if category not in LEADERBOARD_CATEGORIES:
            raise ValidationError(f"Invalid leaderboard category. Use one of: {', '.join(LEADERBOARD_CATEGORIES)}")

        cache_key = f'{LEADERBOARD_CACHE_PREFIX}{category}:{limit}'
        cached = cache_service.get_json(cache_key)
        if cached is not None:
            return cached

        if category == 'tasks':
            value = func.count(TaskItem.id)
            stmt = (
                select(User.id, User.username, value)
                .join(TaskItem, TaskItem.user_id == User.id)
                .where(TaskItem.is_completed.is_(True), User.active.is_(True))
                .group_by(User.id, User.username)
            )
        else:
            value = UserProgress.total_points_earned if category == 'points' else UserProgress.current_streak
            stmt = (
                select(User.id, User.username, value)
                .join(UserProgress, UserProgress.user_id == User.id)
                .where(User.active.is_(True))
            )
        rows = db.session.execute(stmt.order_by(value.desc(), User.username).limit(limit)).all()

        board = [
            {'rank': index, 'user_id': user_id, 'username': username, 'value': score}
            for index, (user_id, username, score) in enumerate(rows, start=1)
        ]
        cache_service.set_json(cache_key, board, ex=current_app.config.get('LEADERBOARD_CACHE_TTL', 60))
        return board

    def get_priority_multipliers(self) -> Dict[str, float]:
        return dict(PRIORITY_MULTIPLIERS)


gamification_service = GamificationService()
