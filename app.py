"""
TaskTracker application factory.

Builds the Flask app, binds the extension singletons, registers the JSON API
blueprints plus the /notifications Socket.IO namespace, and prepares the
database (schema + default admin + gamification catalogue).
"""

import logging

from flask import Flask, jsonify, request

from config import get_config
from extensions import login_manager, csrf, limiter, socketio, cors
from models import db, User

logger = logging.getLogger(__name__)


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )


def _init_login(app: Flask) -> None:
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        try:
            return db.session.get(User, int(user_id))
        except (TypeError, ValueError):
            return None

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'message': 'Authentication required'}), 401


def _register_security_headers(app: Flask) -> None:
    @app.after_request
    def set_security_headers(response):
        response.headers.setdefault('X-Content-Type-Options', 'nosniff')
        response.headers.setdefault('X-Frame-Options', 'DENY')
        response.headers.setdefault('Referrer-Policy', 'strict-origin-when-cross-origin')
        if request.path.startswith('/api/'):
            response.headers.setdefault('Cache-Control', 'no-store')
        return response


def _register_blueprints(app: Flask):
    from utils.startup_validation import BlueprintRegistry
    from routes.auth import auth_bp
    from routes.api_tasks import api_tasks_bp
    from routes.api_tags import api_tags_bp
    from routes.api_categories import api_categories_bp
    from routes.api_gamification import api_gamification_bp
    from routes.api_statistics import api_statistics_bp
    from routes.api_focus import api_focus_bp
    from routes.api_notifications import api_notifications_bp
    from routes.admin import admin_bp
    from routes.health_production import health_production_bp, api_health_bp

    registry = BlueprintRegistry(app)
    for blueprint in (
        auth_bp,
        api_tasks_bp,
        api_tags_bp,
        api_categories_bp,
        api_gamification_bp,
        api_statistics_bp,
        api_focus_bp,
        api_notifications_bp,
        admin_bp,
        health_production_bp,
        api_health_bp,
    ):
        registry.register(blueprint)
    registry.log_summary()
    return registry


def _prepare_database(app: Flask) -> None:
    from services.seed_service import seed_default_admin, seed_gamification_catalogue

    with app.app_context():
        db.create_all()
        if app.config.get('SEED_ON_STARTUP'):
            seed_default_admin()
            seed_gamification_catalogue()


def create_app(config_object=None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object or get_config())
    _configure_logging(app)

    db.init_app(app)
    _init_login(app)
    csrf.init_app(app)
    limiter.init_app(app)
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": app.config['CORS_ORIGINS']}},
        supports_credentials=True,
    )
    socketio.init_app(
        app,
        async_mode=app.config['SOCKETIO_ASYNC_MODE'],
        cors_allowed_origins=app.config['CORS_ORIGINS'],
        manage_session=False,
    )

    from services.notification_broadcaster import notification_broadcaster
    from routes.notifications_websocket import register_notifications_namespace
    from routes.health_production import mark_startup_complete
    from utils.errors import register_error_handlers
    from utils.startup_validation import run_startup_validation

    notification_broadcaster.init_app(socketio)
    register_error_handlers(app)
    _register_security_headers(app)
    registry = _register_blueprints(app)
    register_notifications_namespace(socketio)
    app.extensions['blueprint_registry'] = registry

    _prepare_database(app)
    report = run_startup_validation(app, db)
    app.extensions['startup_report'] = report
    mark_startup_complete()

    logger.info(f"🚀 TaskTracker ready ({app.config.get('ENV_NAME', 'configured')})")
    return app
