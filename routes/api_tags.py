"""
Tags API Routes
"""

from flask import Blueprint, jsonify
from flask_login import login_required, current_user

from services.task_service import task_service
from utils.validation import get_json_body

api_tags_bp = Blueprint('api_tags', __name__, url_prefix='/api/v1/tags')


@api_tags_bp.route('', methods=['GET'])
@login_required
def list_tags():
    tags = task_service.get_tags(current_user.id)
    return jsonify({'success': True, 'tags': [t.to_dict() for t in tags]})


@api_tags_bp.route('', methods=['POST'])
@login_required
def create_tag():
    tag = task_service.create_tag(current_user.id, get_json_body().get('name'))
    return jsonify({'success': True, 'tag': tag.to_dict()}), 201


@api_tags_bp.route('/<int:tag_id>', methods=['PUT'])
@login_required
def update_tag(tag_id):
    tag = task_service.update_tag(current_user.id, tag_id, get_json_body().get('name'))
    return jsonify({'success': True, 'tag': tag.to_dict()})


@api_tags_bp.route('/<int:tag_id>', methods=['DELETE'])
@login_required
def delete_tag(tag_id):
    task_service.delete_tag(current_user.id, tag_id)
    return jsonify({'success': True, 'message': 'Tag deleted'})
