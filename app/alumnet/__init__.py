import logging
import os

from flask import Flask, g, jsonify
from dotenv import load_dotenv
from werkzeug.exceptions import HTTPException

from app.alumnet.config import check_production_config, is_production, load_config
from app.alumnet.db import init_db, teardown_db_session
from app.alumnet.errors import AppError
from app.alumnet.routes import bp as routes_bp
from app.alumnet.auth import bp as auth_bp, load_current_user
from app.alumnet.admin import bp as admin_bp
from app.alumnet.session import session_service_from_config
from app.alumnet.modules.settings.routes import bp as settings_bp
from app.alumnet.modules.jobs.routes import bp as jobs_bp
from app.alumnet.modules.accomplishments.routes import bp as accomplishments_bp
from app.alumnet.modules.moderation.routes import bp as moderation_bp
from app.alumnet.modules.events.routes import bp as events_bp
from app.alumnet.modules.alumni.routes import bp as alumni_bp
from app.alumnet.modules.dashboard.routes import bp as dashboard_bp


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.json.sort_keys = app.config["JSON_SORT_KEYS"]

    # Production guardrails (fail fast with clear logs)
    if is_production(app.config.get("ENV")):
        check_production_config(app.config)

    init_db(app)
    app.extensions["alumnet_sessions"] = session_service_from_config(app.config)

    def _dispose_engine_on_fork() -> None:
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")
    app.register_blueprint(settings_bp, url_prefix="/api")
    app.register_blueprint(jobs_bp, url_prefix="/api")
    app.register_blueprint(accomplishments_bp, url_prefix="/api")
    app.register_blueprint(moderation_bp, url_prefix="/api")
    app.register_blueprint(events_bp, url_prefix="/api")
    app.register_blueprint(alumni_bp, url_prefix="/api")
    app.register_blueprint(dashboard_bp, url_prefix="/api")

    app.before_request(load_current_user)
    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(AppError)
    def _app_error(e: AppError):
        if e.status_code >= 500:
            app.logger.error("%s (request_id=%s): %s", e.code, getattr(g, "request_id", None), e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        code = (e.name or "error").lower().replace(" ", "_")
        return jsonify({"error": code, "message": e.description}), e.code

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        # Ensure stack trace shows in logs.
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return jsonify({"error": "internal_error", "message": "Something went wrong."}), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
