"""
Focus Session API Routes
Start, switch, pause, resume and end focus sessions; distractions and reports.
"""

from datetime import datetime, time

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from services.focus_service import focus_service
from utils.errors import ValidationError, NotFoundError
from utils.validation import get_json_body, optional_bool, optional_int, parse_date

api_focus_bp = Blueprint('api_focus', __name__, url_prefix='/api/v1/focus')


def _session_response(session, status=200):
    return jsonify({'success': True, 'session': session.to_dict()}), status


def _required_task_id(data):
    task_id = optional_int(data.get('task_id'), 'task_id')
    if task_id is None:
        raise ValidationError('task_id is required')
    return task_id


@api_focus_bp.route('/current', methods=['GET'])
@login_required
def current_session():
    session = focus_service.get_current_session(current_user.id)
    if session is None:
        raise NotFoundError('No active focus session')
    return _session_response(session)


@api_focus_bp.route('/start', methods=['POST'])
@login_required
def start_session():
    data = get_json_body()
    session = focus_service.start_session(
        current_user.id, _required_task_id(data),
        notes=data.get('notes'), force_start=optional_bool(data.get('force_start'), 'force_start'),
    )
    return _session_response(session, 201)


@api_focus_bp.route('/switch', methods=['POST'])
@login_required
def switch_task():
    data = get_json_body()
    session = focus_service.switch_task(current_user.id, _required_task_id(data), notes=data.get('notes'))
    return _session_response(session, 201)


@api_focus_bp.route('/<int:session_id>/end', methods=['POST'])
@login_required
def end_session(session_id):
    return _session_response(focus_service.end_session(current_user.id, session_id))


@api_focus_bp.route('/current/end', methods=['POST'])
@login_required
def end_current_session():
    return _session_response(focus_service.end_current_session(current_user.id))


@api_focus_bp.route('/<int:session_id>/complete', methods=['PUT'])
@login_required
def complete_session(session_id):
    session = focus_service.complete_session(current_user.id, session_id, get_json_body())
    return _session_response(session)


@api_focus_bp.route('/<int:session_id>/pause', methods=['POST'])
@login_required
def pause_session(session_id):
    return _session_response(focus_service.pause_session(current_user.id, session_id))


@api_focus_bp.route('/current/pause', methods=['POST'])
@login_required
def pause_current_session():
    return _session_response(focus_service.pause_current_session(current_user.id))


@api_focus_bp.route('/<int:session_id>/resume', methods=['POST'])
@login_required
def resume_session(session_id):
    return _session_response(focus_service.resume_session(current_user.id, session_id))


@api_focus_bp.route('/distraction', methods=['POST'])
@login_required
def record_distraction():
    data = get_json_body()
    session_id = optional_int(data.get('session_id'), 'session_id')
    if session_id is None:
        raise ValidationError('session_id is required')
    distraction = focus_service.record_distraction(
        current_user.id, session_id, data.get('description'), data.get('category')
    )
    return jsonify({'success': True, 'distraction': distraction.to_dict()}), 201


@api_focus_bp.route('/<int:session_id>/distractions', methods=['GET'])
@login_required
def get_distractions(session_id):
    distractions = focus_service.get_distractions(current_user.id, session_id)
    return jsonify({'success': True, 'distractions': [d.to_dict() for d in distractions]})


@api_focus_bp.route('/history', methods=['GET'])
@login_required
def get_history():
    sessions = focus_service.get_history(current_user.id)
    return jsonify({'success': True, 'sessions': [s.to_dict() for s in sessions]})


@api_focus_bp.route('/statistics', methods=['GET'])
@login_required
def get_statistics():
    start = parse_date(request.args.get('start_date'), 'start_date')
    end = parse_date(request.args.get('end_date'), 'end_date')
    stats = focus_service.get_statistics(
        current_user.id,
        start=datetime.combine(start, time.min) if start else None,
        end=datetime.combine(end, time.max) if end else None,
    )
    return jsonify({'success': True, 'statistics': stats})


@api_focus_bp.route('/insights', methods=['GET'])
@login_required
def get_insights():
    days = max(1, min(request.args.get('days', 30, type=int), 365))
    return jsonify({'success': True, 'insights': focus_service.get_insights(current_user.id, days)})


@api_focus_bp.route('/suggestions', methods=['GET'])
@login_required
def get_suggestions():
    tasks = focus_service.get_suggestions(current_user.id)
    return jsonify({'success': True, 'tasks': [t.to_dict() for t in tasks]})
