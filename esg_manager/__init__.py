import os
import logging
import traceback
from datetime import datetime, timezone

from flask import Flask, redirect, url_for, request, jsonify, flash
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS

from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
login_manager.login_view = "auth.login"
login_manager.login_message_category = "info"

_startup_errors = []

_DEFAULT_SECRETS = {
    "SECRET_KEY": "dev-secret-key-change-in-production",
    "JWT_SECRET": "dev-jwt-secret-change-in-production",
}


def is_api_request():
    return request.path.startswith("/api/")


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    if app.config.get("APP_ENV") != "development":
        for key, default in _DEFAULT_SECRETS.items():
            if app.config.get(key) == default:
                logger.warning(f"{key} is using the development default outside development mode")

    os.makedirs(app.instance_path, exist_ok=True)

    # HTTPS support behind a reverse proxy
    if os.environ.get("RENDER"):
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

    db.init_app(app)
    login_manager.init_app(app)

    from flask_compress import Compress
    Compress(app)

    from esg_manager.api import register_api_error_handlers
    from esg_manager.auth.routes import auth_bp
    from esg_manager.auth.api import auth_api_bp
    from esg_manager.projects.routes import projects_bp
    from esg_manager.projects.api import projects_api_bp
    from esg_manager.dashboard.routes import dashboard_bp
    from esg_manager.dev.routes import dev_api_bp
    from esg_manager.filters import register_filters
    from esg_manager.cli import register_commands

    app.register_blueprint(auth_bp)
    app.register_blueprint(auth_api_bp)
    app.register_blueprint(projects_bp)
    app.register_blueprint(projects_api_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(dev_api_bp)

    register_api_error_handlers(app)
    register_filters(app)
    register_commands(app)

    # Browser calls to the JSON API from the separate frontend origin
    CORS(
        app,
        resources={r"/api/*": {"origins": app.config["FRONTEND_URL"]}},
        supports_credentials=True,
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.route("/health")
    def health():
        """Health check: app status and database connectivity."""
        db_url = app.config["SQLALCHEMY_DATABASE_URI"]
        db_type = db_url.split("://")[0] if "://" in db_url else "sqlite"

        db_ok = False
        db_error = None
        tables = []
        try:
            from sqlalchemy import inspect, text
            db.session.execute(text("SELECT 1"))
            db_ok = True
            tables = inspect(db.engine).get_table_names()
        except Exception as e:
            db_error = str(e)

        return jsonify({
            "success": db_ok,
            "status": "ok" if db_ok else "db_error",
            "message": "ESG Management System API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database_type": db_type,
            "database_connected": db_ok,
            "database_error": db_error,
            "tables": tables,
            "startup_errors": _startup_errors,
        }), 200 if db_ok else 503

    @app.errorhandler(404)
    def not_found(error):
        if is_api_request():
            return jsonify({"success": False, "message": "API endpoint not found"}), 404
        flash("Page not found.", "warning")
        return redirect(url_for("dashboard.index"))

    @app.errorhandler(405)
    def method_not_allowed(error):
        if is_api_request():
            return jsonify({"success": False, "message": "Method not allowed"}), 405
        return error

    @app.errorhandler(413)
    def request_too_large(error):
        max_mb = app.config.get("MAX_CONTENT_LENGTH", 0) // (1024 * 1024)
        if is_api_request():
            return jsonify({
                "success": False,
                "message": f"Request body too large. Maximum size is {max_mb} MB.",
            }), 413
        flash(f"Submission too large. Maximum size is {max_mb} MB.", "danger")
        return redirect(request.referrer or url_for("dashboard.index"))

    @app.errorhandler(500)
    def internal_error(error):
        try:
            db.session.rollback()
        except Exception:
            logger.exception("Session rollback failed while handling a 500 error")
        original = getattr(error, "original_exception", None) or error
        error_detail = f"{type(original).__name__}: {original}"
        tb = traceback.format_exc()
        logger.error(f"500 error: {error_detail}\n{tb}")
        debug_detail = app.config.get("APP_ENV") == "development"

        if is_api_request():
            body = {"success": False, "message": "Internal server error"}
            if debug_detail:
                body["error"] = error_detail
            return jsonify(body), 500

        from markupsafe import escape
        safe_detail = escape(error_detail) if debug_detail else ""
        html = f"""<!DOCTYPE html>
        <html><head><title>Error</title>
        <link href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.3/dist/css/bootstrap.min.css" rel="stylesheet">
        </head><body class="bg-light">
        <div class="container py-5">
            <div class="card border-danger">
                <div class="card-header bg-danger text-white"><h5 class="mb-0">Server Error</h5></div>
                <div class="card-body">
                    <p>Something went wrong. The error has been logged.</p>
                    {f"<p class='text-muted small mb-2'><strong>Error:</strong> {safe_detail}</p>" if safe_detail else ""}
                    <p class="text-muted small">Check <a href="/health">/health</a> to verify database connectivity.</p>
                    <a href="/" class="btn btn-success mt-2">Go to Dashboard</a>
                </div>
            </div>
        </div></body></html>"""
        return html, 500

    with app.app_context():
        try:
            db.create_all()
            logger.info("Database tables created/verified.")
        except Exception as e:
            msg = f"db.create_all() failed: {e}"
            logger.error(msg)
            _startup_errors.append(msg)

        try:
            _safe_migrate()
        except Exception as e:
            msg = f"_safe_migrate() failed: {e}"
            logger.error(msg)
            _startup_errors.append(msg)

        try:
            from esg_manager.key_issues import seed_key_issues
            seed_key_issues()
        except Exception as e:
            msg = f"seed_key_issues() failed: {e}"
            logger.error(msg)
            _startup_errors.append(msg)

    return app


def _safe_migrate():
    """Add columns that older databases are missing."""
    from sqlalchemy import inspect, text
    inspector = inspect(db.engine)
    table_names = inspector.get_table_names()

    # annual_revenue was added to the submission form after the first release
    if "projects" in table_names:
        columns = [c["name"] for c in inspector.get_columns("projects")]
        if "annual_revenue" not in columns:
            db.session.execute(text("ALTER TABLE projects ADD COLUMN annual_revenue FLOAT"))
            db.session.commit()
