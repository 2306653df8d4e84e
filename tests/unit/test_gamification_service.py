"""
Gamification Service Unit Tests

Points and levels, streaks, achievements, badges, rewards, challenges,
daily check-ins and the leaderboard.
"""

import pytest
from datetime import datetime, timedelta

from models import Achievement, Badge, Challenge, PointTransaction, Reward, UserAchievement
from services.gamification_service import gamification_service, level_threshold
from services.task_service import task_service
from utils.errors import ConflictError, NotFoundError, ValidationError


def _transactions(db_session, user_id, transaction_type):
    return db_session.query(PointTransaction).filter_by(
        user_id=user_id, transaction_type=transaction_type).all()


class TestLevels:

    def test_thresholds(self):
        assert level_threshold(1) == 100
        assert level_threshold(2) == 282
        assert level_threshold(4) == 800

    def test_new_user_progress(self, test_user):
        progress = gamification_service.get_user_progress(test_user.id)
        assert progress.level == 1
        assert progress.current_points == 0
        assert progress.next_level_threshold == 100

    def test_level_up_carries_remainder(self, test_user):
        progress = gamification_service.add_points(test_user.id, 130, 'bonus', commit=True)
        assert progress.level == 2
        assert progress.current_points == 30
        assert progress.total_points_earned == 130
        assert progress.next_level_threshold == 282

    def test_negative_points_rejected(self, test_user):
        with pytest.raises(ValidationError):
            gamification_service.add_points(test_user.id, -5, 'bonus')


class TestTaskPoints:

    @pytest.mark.parametrize('priority,expected', [
        ('low', 5), ('medium', 10), ('high', 15), ('critical', 20),
    ])
    def test_priority_multiplier(self, test_user, priority, expected):
        task = task_service.create_task(test_user.id, {'title': 'Task', 'priority': priority})
        assert gamification_service.calculate_task_points(task) == expected

    def test_first_completion_unlocks_first_steps(self, db_session, test_user):
        task = task_service.create_task(test_user.id, {'title': 'First'})
        task_service.update_task_status(test_user.id, task.id, 'completed')

        names = {ua.achievement.name for ua in gamification_service.get_user_achievements(test_user.id)}
        assert {'Creator', 'First Steps'} <= names
        assert [t.points for t in _transactions(db_session, test_user.id, 'task_completion')] == [10]

        progress = gamification_service.get_user_progress(test_user.id)
        assert progress.current_streak == 1
        assert progress.last_activity_date is not None


class TestStreaks:

    def test_consecutive_day_extends(self, test_user):
        progress = gamification_service.get_user_progress(test_user.id)
        progress.current_streak = 2
        progress.longest_streak = 2
        progress.last_activity_date = datetime.utcnow().date() - timedelta(days=1)

        gamification_service.update_streak(test_user.id, commit=True)
        assert progress.current_streak == 3
        assert progress.longest_streak == 3

    def test_gap_resets(self, test_user):
        progress = gamification_service.get_user_progress(test_user.id)
        progress.current_streak = 7
        progress.longest_streak = 7
        progress.last_activity_date = datetime.utcnow().date() - timedelta(days=3)

        gamification_service.update_streak(test_user.id, commit=True)
        assert progress.current_streak == 1
        assert progress.longest_streak == 7

    def test_same_day_is_idempotent(self, test_user):
        gamification_service.update_streak(test_user.id)
        progress = gamification_service.update_streak(test_user.id)
        assert progress.current_streak == 1


class TestAchievements:

    def test_manual_unlock_twice_conflicts(self, db_session, test_user):
        achievement = db_session.query(Achievement).filter_by(name='Task Master').one()
        gamification_service.unlock_achievement(test_user.id, achievement.id)
        with pytest.raises(ConflictError):
            gamification_service.unlock_achievement(test_user.id, achievement.id)

    def test_unknown_achievement(self, test_user):
        with pytest.raises(NotFoundError):
            gamification_service.unlock_achievement(test_user.id, 999999)

    def test_available_excludes_unlocked(self, db_session, test_user):
        achievement = db_session.query(Achievement).filter_by(name='Task Master').one()
        gamification_service.unlock_achievement(test_user.id, achievement.id)
        available_ids = {a.id for a in gamification_service.get_available_achievements(test_user.id)}
        assert achievement.id not in available_ids

    def test_unlock_is_recorded_once(self, db_session, test_user):
        task = task_service.create_task(test_user.id, {'title': 'One'})
        task_service.update_task_status(test_user.id, task.id, 'completed')
        gamification_service.evaluate_achievements(test_user.id, 'tasks_completed')
        first_steps = db_session.query(Achievement).filter_by(name='First Steps').one()
        assert db_session.query(UserAchievement).filter_by(
            user_id=test_user.id, achievement_id=first_steps.id).count() == 1


class TestBadges:

    def test_award_and_feature(self, db_session, test_user):
        early, champion = (db_session.query(Badge).filter_by(name=name).one() for name in ('Early Bird', 'Champion'))
        gamification_service.award_badge(test_user.id, early.id)
        gamification_service.award_badge(test_user.id, champion.id)

        gamification_service.feature_badge(test_user.id, early.id)
        gamification_service.feature_badge(test_user.id, champion.id)

        featured = [ub.badge_id for ub in gamification_service.get_user_badges(test_user.id) if ub.is_featured]
        assert featured == [champion.id]
        assert [t.points for t in _transactions(db_session, test_user.id, 'badge')] == [25, 100]

    def test_award_twice_conflicts(self, db_session, test_user):
        badge = db_session.query(Badge).filter_by(name='Early Bird').one()
        gamification_service.award_badge(test_user.id, badge.id)
        with pytest.raises(ConflictError):
            gamification_service.award_badge(test_user.id, badge.id)

    def test_toggle_unowned_badge(self, db_session, test_user):
        badge = db_session.query(Badge).filter_by(name='Champion').one()
        with pytest.raises(NotFoundError):
            gamification_service.toggle_badge_display(test_user.id, badge.id, False)


class TestRewards:

    def test_redeem_deducts_points(self, db_session, test_user):
        reward = db_session.query(Reward).filter_by(name='Custom Avatar').one()
        progress = gamification_service.get_user_progress(test_user.id)
        progress.level = 2
        progress.current_points = 250
        db_session.commit()
        before = progress.current_points

        user_reward = gamification_service.redeem_reward(test_user.id, reward.id)

        assert progress.current_points == before - reward.point_cost
        assert [t.points for t in _transactions(db_session, test_user.id, 'reward_redemption')] == [-reward.point_cost]
        assert gamification_service.use_reward(test_user.id, user_reward.id) is True
        assert gamification_service.use_reward(test_user.id, user_reward.id) is False

    def test_level_requirement(self, db_session, test_user):
        reward = db_session.query(Reward).filter_by(name='Custom Avatar').one()
        with pytest.raises(ValidationError):
            gamification_service.redeem_reward(test_user.id, reward.id)

    def test_insufficient_points(self, db_session, test_user):
        reward = Reward(name='Sticker', point_cost=50, minimum_level=1, is_active=True)
        db_session.add(reward)
        db_session.commit()
        with pytest.raises(ConflictError):
            gamification_service.redeem_reward(test_user.id, reward.id)

    def test_expired_and_out_of_stock(self, db_session, test_user):
        expired = Reward(name='Old', point_cost=0, minimum_level=1, is_active=True,
                         expiration_date=datetime.utcnow() - timedelta(days=1))
        sold_out = Reward(name='Gone', point_cost=0, minimum_level=1, is_active=True, quantity=0)
        db_session.add_all([expired, sold_out])
        db_session.commit()

        with pytest.raises(ConflictError):
            gamification_service.redeem_reward(test_user.id, expired.id)
        with pytest.raises(ConflictError):
            gamification_service.redeem_reward(test_user.id, sold_out.id)
        available = {r.id for r in gamification_service.get_available_rewards(test_user.id)}
        assert expired.id not in available and sold_out.id not in available


class TestChallenges:

    def test_enroll_and_complete_awards_badge(self, db_session, test_user):
        sprint = db_session.query(Challenge).filter_by(name='Task Sprint').one()
        gamification_service.enroll_in_challenge(test_user.id, sprint.id)
        with pytest.raises(ConflictError):
            gamification_service.enroll_in_challenge(test_user.id, sprint.id)

        for i in range(5):
            task = task_service.create_task(test_user.id, {'title': f'Sprint {i}'})
            task_service.update_task_status(test_user.id, task.id, 'completed')

        enrolled = gamification_service.get_user_challenges(test_user.id)
        assert enrolled[0].is_completed is True
        assert enrolled[0].current_progress == 5
        badge_names = [ub.badge.name for ub in gamification_service.get_user_badges(test_user.id)]
        assert 'Finisher' in badge_names
        assert [t.points for t in _transactions(db_session, test_user.id, 'challenge')] == [50]
        assert gamification_service.get_current_challenge(test_user.id) is None

    def test_ended_challenge_cannot_be_joined(self, db_session, test_user):
        finished = Challenge(name='Last Year', activity_type='task_completion', target_count=1,
                             start_date=datetime(2020, 1, 1), end_date=datetime(2020, 2, 1), is_active=True)
        db_session.add(finished)
        db_session.commit()
        with pytest.raises(ConflictError):
            gamification_service.enroll_in_challenge(test_user.id, finished.id)

    def test_leave_challenge(self, db_session, test_user):
        planner = db_session.query(Challenge).filter_by(name='Planner').one()
        gamification_service.enroll_in_challenge(test_user.id, planner.id)
        gamification_service.leave_challenge(test_user.id, planner.id)
        with pytest.raises(NotFoundError):
            gamification_service.leave_challenge(test_user.id, planner.id)


class TestDailyLogin:

    def test_claim_once_per_day(self, test_user):
        status = gamification_service.get_daily_login_status(test_user.id)
        assert status['has_claimed_today'] is False
        assert status['potential_points'] == 10

        result = gamification_service.process_daily_login(test_user.id)
        assert result['points_awarded'] == 10
        assert result['current_streak'] == 1

        with pytest.raises(ConflictError):
            gamification_service.process_daily_login(test_user.id)
        assert gamification_service.get_daily_login_status(test_user.id)['has_claimed_today'] is True


class TestLeaderboard:

    def test_points_board_is_ranked(self, test_user, other_user):
        gamification_service.add_points(test_user.id, 5000, 'bonus', commit=True)
        board = gamification_service.get_leaderboard('points', limit=50)
        ranks = [entry['rank'] for entry in board]
        assert ranks == list(range(1, len(board) + 1))
        values = [entry['value'] for entry in board]
        assert values == sorted(values, reverse=True)
        assert any(entry['user_id'] == test_user.id for entry in board)

    def test_invalid_category(self):
        with pytest.raises(ValidationError):
            gamification_service.get_leaderboard('karma')
