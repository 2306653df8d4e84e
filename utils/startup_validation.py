"""
Startup Validation

Runs once from ``create_app``:
- configuration checks (fail fast in production on missing secrets)
- database connectivity
- optional Redis availability, reported as a degraded feature
- blueprint registration bookkeeping
"""

import os
import logging
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class StartupValidationError(RuntimeError):
    """Raised in production when a critical startup check fails."""


@dataclass
class ValidationResult:
    name: str
    passed: bool
    message: str
    severity: str = "error"  # error, warning, info


@dataclass
class StartupReport:
    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat())
    environment: str = "development"
    validations: List[ValidationResult] = field(default_factory=list)
    features_degraded: List[str] = field(default_factory=list)

    def add(self, name: str, passed: bool, message: str, severity: str = "error"):
        self.validations.append(ValidationResult(name, passed, message, severity))

    def has_critical_failures(self) -> bool:
        return any(v.severity == "error" and not v.passed for v in self.validations)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "environment": self.environment,
            "validations": [v.__dict__ for v in self.validations],
            "features_degraded": self.features_degraded,
            "ready": not self.has_critical_failures(),
        }


class StartupValidator:

    def __init__(self, app, db):
        self.app = app
        self.db = db
        self.report = StartupReport(environment=os.getenv("FLASK_ENV", "development"))

    def is_production(self) -> bool:
        return self.report.environment == "production"

    def validate_config(self) -> None:
        secret = os.getenv("SESSION_SECRET", "")
        if self.is_production():
            self.report.add("env:SESSION_SECRET", len(secret) >= 32,
                            "SESSION_SECRET must be set to 32+ characters in production")
            self.report.add("env:DATABASE_URL", bool(os.getenv("DATABASE_URL")),
                            "DATABASE_URL must be set in production")
        elif not secret:
            self.report.add("env:SESSION_SECRET", True,
                            "SESSION_SECRET not set - using development fallback", severity="warning")

    def validate_database(self) -> None:
        try:
            with self.app.app_context():
                self.db.session.execute(text("SELECT 1"))
                self.db.session.rollback()
            self.report.add("db:connection", True, "Database connection successful")
        except SQLAlchemyError as e:
            self.report.add("db:connection", False, f"Database connection failed: {str(e)[:100]}")

    def validate_cache(self) -> None:
        from services.cache import cache
        if os.getenv("REDIS_URL") and cache.backend != "redis":
            self.report.features_degraded.append("cache: Redis unreachable, using no-op cache")
            self.report.add("redis:connection", False, "Redis configured but unreachable", severity="warning")

    def run(self) -> StartupReport:
        self.validate_config()
        self.validate_database()
        self.validate_cache()

        for v in self.report.validations:
            if not v.passed:
                log = logger.error if v.severity == "error" else logger.warning
                log(f"Startup check failed - {v.name}: {v.message}")
        for feature in self.report.features_degraded:
            logger.warning(f"⚠️ Degraded - {feature}")

        if self.report.has_critical_failures():
            if self.is_production():
                raise StartupValidationError("Critical startup validation failed")
            logger.warning("Development mode: continuing despite validation failures")
        return self.report


class BlueprintRegistry:
    """Registers blueprints and keeps a record of what was loaded."""

    def __init__(self, app):
        self.app = app
        self.loaded: List[str] = []

    def register(self, blueprint, url_prefix: Optional[str] = None) -> None:
        if url_prefix:
            self.app.register_blueprint(blueprint, url_prefix=url_prefix)
        else:
            self.app.register_blueprint(blueprint)
        self.loaded.append(blueprint.name)

    def get_status(self) -> Dict[str, Any]:
        return {"loaded_count": len(self.loaded), "loaded": list(self.loaded)}

    def log_summary(self) -> None:
        logger.info(f"Blueprints loaded: {len(self.loaded)} ({', '.join(self.loaded)})")


def run_startup_validation(app, db) -> StartupReport:
    return StartupValidator(app, db).run()
