"""
Task Statistics API Routes
"""

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from services.task_statistics_service import task_statistics_service

api_statistics_bp = Blueprint('api_statistics', __name__, url_prefix='/api/v1/task-statistics')


@api_statistics_bp.route('', methods=['GET'])
@login_required
def get_statistics():
    return jsonify({'success': True, 'statistics': task_statistics_service.get_task_statistics(current_user.id)})


@api_statistics_bp.route('/completion-rate', methods=['GET'])
@login_required
def completion_rate():
    return jsonify({'success': True, 'data': task_statistics_service.get_completion_rate(current_user.id)})


@api_statistics_bp.route('/status-distribution', methods=['GET'])
@login_required
def status_distribution():
    return jsonify({'success': True, 'data': task_statistics_service.get_status_distribution(current_user.id)})


@api_statistics_bp.route('/priority-distribution', methods=['GET'])
@login_required
def priority_distribution():
    return jsonify({'success': True, 'data': task_statistics_service.get_priority_distribution(current_user.id)})


@api_statistics_bp.route('/category-distribution', methods=['GET'])
@login_required
def category_distribution():
    return jsonify({'success': True, 'data': task_statistics_service.get_category_distribution(current_user.id)})


@api_statistics_bp.route('/active-categories', methods=['GET'])
@login_required
def active_categories():
    limit = request.args.get('limit', 5, type=int)
    return jsonify({'success': True, 'data': task_statistics_service.get_most_active_categories(current_user.id, limit)})


@api_statistics_bp.route('/completion-time', methods=['GET'])
@login_required
def completion_time():
    return jsonify({'success': True, 'data': task_statistics_service.get_completion_time_average(current_user.id)})


@api_statistics_bp.route('/overdue', methods=['GET'])
@login_required
def overdue():
    return jsonify({'success': True, 'data': task_statistics_service.get_overdue_statistics(current_user.id)})


@api_statistics_bp.route('/productivity', methods=['GET'])
@login_required
def productivity():
    days = request.args.get('days', 30, type=int)
    return jsonify({'success': True, 'data': task_statistics_service.get_productivity_trend(current_user.id, days)})


@api_statistics_bp.route('/productivity/time-of-day', methods=['GET'])
@login_required
def productivity_time_of_day():
    return jsonify({'success': True, 'data': task_statistics_service.get_productivity_by_time_of_day(current_user.id)})
