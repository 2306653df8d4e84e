"""
Health Check Endpoints

1. /api/v1/health - public API health ({"status": "healthy"})
2. /health/live - Liveness probe (is the process alive?)
3. /health/ready - Readiness probe (can it serve traffic?)
4. /health/startup - Startup probe (has it finished initializing?)
5. /health/detailed - Dependency and system diagnostics
"""

import os
import time
import logging
from datetime import datetime, timezone
from typing import Dict, Any

import psutil
from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from models import db
from services import cache as cache_service

logger = logging.getLogger(__name__)

health_production_bp = Blueprint('health_production', __name__, url_prefix='/health')
api_health_bp = Blueprint('api_health', __name__, url_prefix='/api/v1/health')

# Track startup time for uptime calculation
_startup_time = time.time()
_startup_complete = False


def mark_startup_complete():
    """Call this after all initialization is done."""
    global _startup_complete
    _startup_complete = True
    logger.info("✅ Startup marked complete - application ready for traffic")


def get_uptime_seconds() -> float:
    return time.time() - _startup_time


def check_database_health() -> Dict[str, Any]:
    """Run SELECT 1 and report latency."""
    start = time.time()
    try:
        db.session.execute(text("SELECT 1")).fetchone()
        db.session.rollback()
        return {
            "healthy": True,
            "latency_ms": round((time.time() - start) * 1000, 2),
            "type": db.engine.dialect.name,
        }
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.warning(f"Database health check failed: {e}")
        return {
            "healthy": False,
            "latency_ms": round((time.time() - start) * 1000, 2),
            "error": str(e)[:100],
        }


def check_cache_health() -> Dict[str, Any]:
    """Redis is optional; the no-op cache counts as healthy."""
    if not os.environ.get("REDIS_URL"):
        return {"healthy": True, "status": "not_configured", "backend": cache_service.cache.backend}
    healthy = cache_service.cache.backend == "redis"
    return {
        "healthy": healthy,
        "status": "connected" if healthy else "unavailable",
        "backend": cache_service.cache.backend,
    }


def get_system_stats() -> Dict[str, Any]:
    process = psutil.Process()
    memory = psutil.virtual_memory()
    return {
        "cpu_percent": psutil.cpu_percent(interval=None),
        "memory_percent": memory.percent,
        "memory_available_mb": round(memory.available / (1024 * 1024), 2),
        "process_rss_mb": round(process.memory_info().rss / (1024 * 1024), 2),
        "process_threads": process.num_threads(),
    }


@api_health_bp.route('', methods=['GET'])
def api_health():
    """Public health endpoint: 200 {"status": "healthy"} or 503 when the database is down."""
    if check_database_health().get("healthy", False):
        return jsonify({"status": "healthy"}), 200
    return jsonify({"status": "unhealthy"}), 503


@health_production_bp.route('/live')
def liveness():
    """Liveness probe - no external dependencies."""
    return jsonify({
        "status": "alive",
        "uptime_seconds": round(get_uptime_seconds(), 2)
    }), 200


@health_production_bp.route('/ready')
def readiness():
    """Readiness probe - 503 when the database is unavailable."""
    checks = {
        "database": check_database_health(),
        "cache": check_cache_health(),
    }
    is_ready = checks["database"].get("healthy", False)
    return jsonify({
        "status": "ready" if is_ready else "not_ready",
        "checks": checks,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }), 200 if is_ready else 503


@health_production_bp.route('/startup')
def startup():
    status = "started" if _startup_complete else "starting"
    return jsonify({
        "status": status,
        "uptime_seconds": round(get_uptime_seconds(), 2)
    }), 200 if _startup_complete else 503


@health_production_bp.route('/detailed')
def detailed_health():
    """Dependency status plus process and host metrics."""
    dependencies = {
        "database": check_database_health(),
        "cache": check_cache_health(),
    }
    critical_healthy = dependencies["database"].get("healthy", False)
    all_healthy = all(d.get("healthy", False) for d in dependencies.values())

    if critical_healthy and all_healthy:
        overall_status = "healthy"
    elif critical_healthy:
        overall_status = "degraded"
    else:
        overall_status = "unhealthy"

    return jsonify({
        "status": overall_status,
        "startup_complete": _startup_complete,
        "uptime_seconds": round(get_uptime_seconds(), 2),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "dependencies": dependencies,
        "system": get_system_stats(),
        "environment": {
            "env": os.environ.get("FLASK_ENV", "development"),
            "redis_configured": bool(os.environ.get("REDIS_URL")),
        },
    }), 200 if overall_status != "unhealthy" else 503
