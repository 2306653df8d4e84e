"""
Tasks API Routes
REST API endpoints for task management, due-date views, batch completion and tagging.
"""

import logging

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from services.task_service import task_service
from utils.errors import ValidationError
from utils.etag_helper import with_etag
from utils.validation import get_json_body, parse_date, int_list, pagination_dict

logger = logging.getLogger(__name__)

api_tasks_bp = Blueprint('api_tasks', __name__, url_prefix='/api/v1/tasks')


def _task_list(tasks):
    return jsonify({'success': True, 'tasks': [t.to_dict() for t in tasks], 'count': len(tasks)})


@api_tasks_bp.route('', methods=['GET'])
@with_etag
@login_required
def list_tasks():
    """Get the current user's tasks with optional filters."""
    filters = {
        'status': request.args.get('status'),
        'priority': request.args.get('priority'),
        'category_id': request.args.get('category_id', None, type=int),
        'search': request.args.get('search'),
        'due': request.args.get('due'),
    }
    return _task_list(task_service.get_tasks(current_user.id, filters))


@api_tasks_bp.route('/paged', methods=['GET'])
@login_required
def list_tasks_paged():
    page = request.args.get('page', 1, type=int)
    page_size = request.args.get('page_size', 10, type=int)
    pagination = task_service.get_tasks_paged(current_user.id, page, page_size)
    return jsonify({
        'success': True,
        'tasks': [t.to_dict() for t in pagination.items],
        'pagination': pagination_dict(pagination),
    })


@api_tasks_bp.route('/<int:task_id>', methods=['GET'])
@login_required
def get_task(task_id):
    task = task_service.get_task(current_user.id, task_id)
    return jsonify({'success': True, 'task': task.to_dict(include_relationships=True)})


@api_tasks_bp.route('', methods=['POST'])
@login_required
def create_task():
    task = task_service.create_task(current_user.id, get_json_body())
    return jsonify({'success': True, 'task': task.to_dict(include_relationships=True)}), 201


@api_tasks_bp.route('/<int:task_id>', methods=['PUT', 'PATCH'])
@login_required
def update_task(task_id):
    task = task_service.update_task(current_user.id, task_id, get_json_body())
    return jsonify({'success': True, 'task': task.to_dict(include_relationships=True)})


@api_tasks_bp.route('/<int:task_id>', methods=['DELETE'])
@login_required
def delete_task(task_id):
    task_service.delete_task(current_user.id, task_id)
    return jsonify({'success': True, 'message': 'Task deleted'})


@api_tasks_bp.route('/<int:task_id>/status', methods=['PUT'])
@login_required
def update_task_status(task_id):
    status = get_json_body().get('status')
    if not status:
        raise ValidationError('status is required')
    task = task_service.update_task_status(current_user.id, task_id, status)
    return jsonify({'success': True, 'task': task.to_dict()})


@api_tasks_bp.route('/complete-batch', methods=['POST'])
@login_required
def complete_batch():
    task_ids = int_list(get_json_body().get('task_ids'), 'task_ids')
    if not task_ids:
        raise ValidationError('task_ids must contain at least one id')
    completed = task_service.complete_tasks(current_user.id, task_ids)
    return jsonify({'success': True, 'completed_task_ids': completed, 'count': len(completed)})


@api_tasks_bp.route('/status/<status>', methods=['GET'])
@login_required
def tasks_by_status(status):
    return _task_list(task_service.get_tasks_by_status(current_user.id, status))


@api_tasks_bp.route('/category/<int:category_id>', methods=['GET'])
@login_required
def tasks_by_category(category_id):
    return _task_list(task_service.get_tasks_by_category(current_user.id, category_id))


@api_tasks_bp.route('/tags/<int:tag_id>', methods=['GET'])
@login_required
def tasks_by_tag(tag_id):
    return _task_list(task_service.get_tasks_by_tag(current_user.id, tag_id))


@api_tasks_bp.route('/due-date-range', methods=['GET'])
@login_required
def tasks_by_due_date_range():
    start = parse_date(request.args.get('start_date'), 'start_date')
    end = parse_date(request.args.get('end_date'), 'end_date')
    if start is None or end is None:
        raise ValidationError('start_date and end_date are required')
    return _task_list(task_service.get_tasks_by_due_date_range(current_user.id, start, end))


@api_tasks_bp.route('/overdue', methods=['GET'])
@login_required
def overdue_tasks():
    return _task_list(task_service.get_overdue_tasks(current_user.id))


@api_tasks_bp.route('/due-today', methods=['GET'])
@login_required
def due_today_tasks():
    return _task_list(task_service.get_due_today_tasks(current_user.id))


@api_tasks_bp.route('/due-this-week', methods=['GET'])
@login_required
def due_this_week_tasks():
    return _task_list(task_service.get_due_this_week_tasks(current_user.id))


@api_tasks_bp.route('/statistics', methods=['GET'])
@login_required
def task_statistics():
    return jsonify({'success': True, 'statistics': task_service.get_task_statistics(current_user.id)})


# Task tags

@api_tasks_bp.route('/<int:task_id>/tags', methods=['GET'])
@login_required
def get_task_tags(task_id):
    tags = task_service.get_task_tags(current_user.id, task_id)
    return jsonify({'success': True, 'tags': [t.to_dict() for t in tags]})


@api_tasks_bp.route('/<int:task_id>/tags/<int:tag_id>', methods=['POST'])
@login_required
def add_tag(task_id, tag_id):
    task = task_service.add_tag_to_task(current_user.id, task_id, tag_id)
    return jsonify({'success': True, 'task': task.to_dict(include_relationships=True)})


@api_tasks_bp.route('/<int:task_id>/tags/<int:tag_id>', methods=['DELETE'])
@login_required
def remove_tag(task_id, tag_id):
    task = task_service.remove_tag_from_task(current_user.id, task_id, tag_id)
    return jsonify({'success': True, 'task': task.to_dict(include_relationships=True)})


@api_tasks_bp.route('/<int:task_id>/tags', methods=['PUT'])
@login_required
def replace_tags(task_id):
    tag_ids = int_list(get_json_body().get('tag_ids'), 'tag_ids')
    task = task_service.update_task_tags(current_user.id, task_id, tag_ids)
    return jsonify({'success': True, 'task': task.to_dict(include_relationships=True)})
