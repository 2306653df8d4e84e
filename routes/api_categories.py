"""
Categories API Routes
CRUD, search, statistics and paging for the current user's categories.
"""

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from services import category_service
from utils.validation import get_json_body, pagination_dict

api_categories_bp = Blueprint('api_categories', __name__, url_prefix='/api/v1/categories')


@api_categories_bp.route('', methods=['GET'])
@login_required
def list_categories():
    categories = category_service.get_categories(current_user.id)
    return jsonify({'success': True, 'categories': [c.to_dict() for c in categories]})


@api_categories_bp.route('/paged', methods=['GET'])
@login_required
def list_categories_paged():
    pagination = category_service.get_categories_paged(
        current_user.id,
        page=request.args.get('page', 1, type=int),
        page_size=request.args.get('page_size', 10, type=int),
    )
    return jsonify({
        'success': True,
        'categories': [c.to_dict() for c in pagination.items],
        'pagination': pagination_dict(pagination),
    })


@api_categories_bp.route('/search', methods=['GET'])
@login_required
def search_categories():
    categories = category_service.search_categories(current_user.id, request.args.get('term', ''))
    return jsonify({'success': True, 'categories': [c.to_dict() for c in categories]})


@api_categories_bp.route('/statistics', methods=['GET'])
@login_required
def category_statistics():
    return jsonify({'success': True, 'statistics': category_service.get_category_statistics(current_user.id)})


@api_categories_bp.route('/<int:category_id>', methods=['GET'])
@login_required
def get_category(category_id):
    category = category_service.get_category(current_user.id, category_id)
    return jsonify({'success': True, 'category': category.to_dict()})


@api_categories_bp.route('/<int:category_id>/tasks', methods=['GET'])
@login_required
def category_tasks(category_id):
    tasks = category_service.get_category_tasks(current_user.id, category_id)
    return jsonify({'success': True, 'tasks': [t.to_dict() for t in tasks]})


@api_categories_bp.route('/<int:category_id>/tasks-count', methods=['GET'])
@login_required
def category_tasks_count(category_id):
    count = category_service.get_category_task_count(current_user.id, category_id)
    return jsonify({'success': True, 'category_id': category_id, 'count': count})


@api_categories_bp.route('', methods=['POST'])
@login_required
def create_category():
    category = category_service.create_category(current_user.id, get_json_body())
    return jsonify({'success': True, 'category': category.to_dict()}), 201


@api_categories_bp.route('/<int:category_id>', methods=['PUT'])
@login_required
def update_category(category_id):
    category = category_service.update_category(current_user.id, category_id, get_json_body())
    return jsonify({'success': True, 'category': category.to_dict()})


@api_categories_bp.route('/<int:category_id>', methods=['DELETE'])
@login_required
def delete_category(category_id):
    category_service.delete_category(current_user.id, category_id)
    return jsonify({'success': True, 'message': 'Category deleted'})
