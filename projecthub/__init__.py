"""
ProjectHub
Flask Application Factory.

Usage:
    from projecthub import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event
from sqlalchemy.exc import SQLAlchemyError

from projecthub.config import config
from projecthub.middleware.logging_config import configure_logging
from projecthub.middleware.rate_limiter import init_rate_limits
from projecthub.models import db
from projecthub.utils.errors import register_error_handlers

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # per-blueprint limits only
    storage_uri=os.getenv("REDIS_URL", "memory://"),  # Redis in production, memory for dev
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    # Instantiated so ProductionConfig can refuse to start without its env vars
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = (app.config.get("CORS_ORIGINS") or "").strip()
    if cors_origins == "*":
        CORS(app)
    else:
        # An empty list allows no cross-origin callers
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])

    # ── Request guards (input length + Content-Type) ─────────────────────
    app.config.setdefault("MAX_CONTENT_LENGTH", 1 * 1024 * 1024)  # 1 MB

    @app.before_request
    def _guard_request():
        from flask import abort, request as _req
        if _req.method in ("POST", "PUT", "PATCH") and _req.path.startswith("/api/"):
            ct = _req.content_type or ""
            if _req.data and "json" not in ct:
                abort(415, description="Content-Type must be application/json")

    # ── Import all models so Alembic can detect them ─────────────────────
    from projecthub.models import activity as _activity_models          # noqa: F401
    from projecthub.models import auth as _auth_models                  # noqa: F401
    from projecthub.models import invitation as _invitation_models      # noqa: F401
    from projecthub.models import notification as _notification_models  # noqa: F401
    from projecthub.models import project as _project_models            # noqa: F401
    from projecthub.models import task as _task_models                  # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    if not app.config.get("TESTING"):
        os.makedirs(app.instance_path, exist_ok=True)
        with app.app_context():
            try:
                db.create_all()
                app.logger.info("db.create_all() completed successfully")
            except SQLAlchemyError as e:
                app.logger.warning("db.create_all() failed: %s", e)

    # ── Blueprints ───────────────────────────────────────────────────────
    from projecthub.blueprints.auth_bp import auth_bp
    from projecthub.blueprints.health_bp import health_bp
    from projecthub.blueprints.invitation_bp import invitation_bp
    from projecthub.blueprints.join_request_bp import join_request_bp
    from projecthub.blueprints.notification_bp import notification_bp
    from projecthub.blueprints.project_bp import project_bp
    from projecthub.blueprints.task_bp import task_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(project_bp)
    app.register_blueprint(task_bp)
    app.register_blueprint(invitation_bp)
    app.register_blueprint(join_request_bp)
    app.register_blueprint(notification_bp)
    app.register_blueprint(health_bp)

    # ── Error handlers ───────────────────────────────────────────────────
    register_error_handlers(app)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("expire-invitations")
    def expire_invitations_cmd():
        """Mark pending invitations past their expiry as expired."""
        from projecthub.services.invitation_service import expire_stale_invitations
        count = expire_stale_invitations()
        logger.info("Expired %s invitation(s).", count)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
