"""
Gamification API Routes
Progress, achievements, badges, rewards, challenges, daily check-in and leaderboards.
"""

import logging

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from services.gamification_service import gamification_service
from services.admin_service import get_user
from utils.auth import admin_required
from utils.errors import ValidationError, NotFoundError
from utils.validation import get_json_body, optional_bool, optional_int

logger = logging.getLogger(__name__)

api_gamification_bp = Blueprint('api_gamification', __name__, url_prefix='/api/v1/gamification')


@api_gamification_bp.route('/progress', methods=['GET'])
@login_required
def get_progress():
    progress = gamification_service.get_user_progress(current_user.id)
    return jsonify({'success': True, 'progress': progress.to_dict()})


@api_gamification_bp.route('/points', methods=['POST'])
@admin_required
def award_points():
    """Admin grant of points to any user."""
    data = get_json_body()
    user = get_user(optional_int(data.get('user_id'), 'user_id') or 0)
    points = optional_int(data.get('points'), 'points')
    if points is None:
        raise ValidationError('points is required')
    progress = gamification_service.add_points(
        user.id, points, data.get('transaction_type') or 'admin_award',
        data.get('description') or f'Awarded by {current_user.username}', commit=True,
    )
    logger.info(f"Admin {current_user.id} awarded {points} points to user {user.id}")
    return jsonify({'success': True, 'progress': progress.to_dict()})


@api_gamification_bp.route('/transactions', methods=['GET'])
@login_required
def get_transactions():
    limit = max(1, min(request.args.get('limit', 20, type=int), 100))
    transactions = gamification_service.get_recent_transactions(current_user.id, limit)
    return jsonify({'success': True, 'transactions': [t.to_dict() for t in transactions]})


# Achievements

@api_gamification_bp.route('/achievements', methods=['GET'])
@login_required
def get_achievements():
    achievements = gamification_service.get_user_achievements(current_user.id)
    return jsonify({'success': True, 'achievements': [a.to_dict() for a in achievements]})


@api_gamification_bp.route('/achievements/available', methods=['GET'])
@login_required
def get_available_achievements():
    achievements = gamification_service.get_available_achievements(current_user.id)
    return jsonify({'success': True, 'achievements': [a.to_dict() for a in achievements]})


# Badges

@api_gamification_bp.route('/badges', methods=['GET'])
@login_required
def get_badges():
    badges = gamification_service.get_user_badges(current_user.id)
    return jsonify({'success': True, 'badges': [b.to_dict() for b in badges]})


@api_gamification_bp.route('/badges/toggle', methods=['POST'])
@login_required
def toggle_badge():
    data = get_json_body()
    badge_id = optional_int(data.get('badge_id'), 'badge_id')
    if badge_id is None:
        raise ValidationError('badge_id is required')
    user_badge = gamification_service.toggle_badge_display(
        current_user.id, badge_id, optional_bool(data.get('is_displayed'), 'is_displayed', default=True)
    )
    return jsonify({'success': True, 'badge': user_badge.to_dict()})


@api_gamification_bp.route('/badges/<int:badge_id>/feature', methods=['POST'])
@login_required
def feature_badge(badge_id):
    user_badge = gamification_service.feature_badge(current_user.id, badge_id)
    return jsonify({'success': True, 'badge': user_badge.to_dict()})


# Rewards

@api_gamification_bp.route('/rewards', methods=['GET'])
@login_required
def get_rewards():
    available = gamification_service.get_available_rewards(current_user.id)
    redeemed = gamification_service.get_user_rewards(current_user.id)
    return jsonify({
        'success': True,
        'rewards': [r.to_dict() for r in available],
        'redeemed': [r.to_dict() for r in redeemed],
    })


@api_gamification_bp.route('/rewards/claim/<int:reward_id>', methods=['POST'])
@login_required
def claim_reward(reward_id):
    user_reward = gamification_service.redeem_reward(current_user.id, reward_id)
    progress = gamification_service.get_user_progress(current_user.id)
    return jsonify({'success': True, 'reward': user_reward.to_dict(), 'progress': progress.to_dict()}), 201


@api_gamification_bp.route('/rewards/use', methods=['POST'])
@login_required
def use_reward():
    user_reward_id = optional_int(get_json_body().get('user_reward_id'), 'user_reward_id')
    if user_reward_id is None:
        raise ValidationError('user_reward_id is required')
    used = gamification_service.use_reward(current_user.id, user_reward_id)
    if not used:
        return jsonify({'success': False, 'message': 'Reward already used'}), 409
    return jsonify({'success': True, 'message': 'Reward used'})


# Challenges

@api_gamification_bp.route('/challenges', methods=['GET'])
@login_required
def get_challenges():
    challenges = gamification_service.get_user_challenges(current_user.id)
    return jsonify({'success': True, 'challenges': [c.to_dict() for c in challenges]})


@api_gamification_bp.route('/challenges/active', methods=['GET'])
@login_required
def get_active_challenges():
    active = gamification_service.get_active_challenges(current_user.id)
    return jsonify({
        'success': True,
        'available': [c.to_dict() for c in active['available']],
        'enrolled': [p.to_dict() for p in active['enrolled']],
    })


@api_gamification_bp.route('/challenges/current', methods=['GET'])
@login_required
def get_current_challenge():
    progress = gamification_service.get_current_challenge(current_user.id)
    if progress is None:
        raise NotFoundError('No active challenge')
    return jsonify({'success': True, 'challenge': progress.to_dict()})


@api_gamification_bp.route('/challenges/<int:challenge_id>/enroll', methods=['POST'])
@login_required
def enroll_challenge(challenge_id):
    progress = gamification_service.enroll_in_challenge(current_user.id, challenge_id)
    return jsonify({'success': True, 'challenge': progress.to_dict()}), 201


@api_gamification_bp.route('/challenges/<int:challenge_id>/leave', methods=['POST'])
@login_required
def leave_challenge(challenge_id):
    gamification_service.leave_challenge(current_user.id, challenge_id)
    return jsonify({'success': True, 'message': 'Left challenge'})


# Daily check-in

@api_gamification_bp.route('/login/status', methods=['GET'])
@login_required
def daily_login_status():
    return jsonify({'success': True, 'status': gamification_service.get_daily_login_status(current_user.id)})


@api_gamification_bp.route('/login/claim', methods=['POST'])
@login_required
def claim_daily_login():
    return jsonify({'success': True, 'result': gamification_service.process_daily_login(current_user.id)})


# Overview

@api_gamification_bp.route('/stats', methods=['GET'])
@login_required
def get_stats():
    return jsonify({'success': True, 'stats': gamification_service.get_gamification_stats(current_user.id)})


@api_gamification_bp.route('/suggestions', methods=['GET'])
@login_required
def get_suggestions():
    return jsonify({'success': True, 'suggestions': gamification_service.get_suggestions(current_user.id)})


@api_gamification_bp.route('/leaderboard', methods=['GET'])
@login_required
def get_leaderboard():
    category = request.args.get('category', 'points')
    limit = max(1, min(request.args.get('limit', 10, type=int), 100))
    board = gamification_service.get_leaderboard(category, limit)
    return jsonify({'success': True, 'category': category, 'leaderboard': board})


@api_gamification_bp.route('/multipliers', methods=['GET'])
@login_required
def get_multipliers():
    return jsonify({'success': True, 'multipliers': gamification_service.get_priority_multipliers()})
