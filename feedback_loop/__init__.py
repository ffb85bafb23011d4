import os
from flask import Flask, render_template, request, redirect, url_for

# Load .env only for local/dev. In prod, env vars come from the platform.
if os.getenv("APP_ENV", "development") != "production":
    from dotenv import load_dotenv
    load_dotenv(".env")


from .config import get_config
from .extensions import db, migrate, csrf, login_manager, limiter
from .security import init_security
from .observability import init_logging, init_sentry
from .services import feedback_api

def create_app(config_overrides=None, api_transport=None):
    """
    ``api_transport`` swaps the httpx transport used for the Feedback API
    (tests pass an ``httpx.MockTransport``).
    """
    app = Flask(__name__, template_folder="templates", static_folder="static")

    # Rate limiting storage: redis in staging/production, memory elsewhere
    app_env = (os.getenv("APP_ENV", "development") or "development").lower()
    use_redis = app_env in ("staging", "production")
    storage_uri = os.environ.get("REDIS_URL") if use_redis else "memory://"
    if use_redis and not storage_uri:
        raise RuntimeError("REDIS_URL is required in staging/production for rate limiting")

    app.config["RATELIMIT_STORAGE_URI"] = storage_uri
    app.config.setdefault("RATELIMIT_HEADERS_ENABLED", True)

    # Config: clean, explicit, class-based
    app.config.from_object(get_config())
    app.config["APP_ENV"] = app_env
    if config_overrides:
        app.config.update(config_overrides)

    def _require(name: str):
        val = os.getenv(name) or app.config.get(name)
        if not val:
            raise RuntimeError(f"Missing required environment variable: {name}")
        return val

    if app_env in ("staging", "production"):
        # Enforce hard requirements at startup (not at import time)
        _require("SECRET_KEY")
        _require("DATABASE_URL")
        _require("FEEDBACK_API_BASE_URL")
        _require("FEEDBACK_API_AUTHENTICATE_HEADER")

    per_page = app.config.get("FEEDBACK_PER_PAGE")
    if not isinstance(per_page, int) or per_page <= 0:
        raise RuntimeError(f"FEEDBACK_PER_PAGE must be a positive integer, got {per_page!r}")

    init_logging(app)
    init_sentry(app)

    # HTTPS, HSTS & CSP only in staging/production
    if app_env in ("staging", "production"):
        init_security(app)

    # Init extensions
    db.init_app(app)
    migrate.init_app(app, db, directory=os.path.join(os.path.dirname(app.root_path), "migrations"))
    csrf.init_app(app)
    login_manager.init_app(app)
    limiter.init_app(app)
    feedback_api.init_app(app, transport=api_transport)

    # Models must be imported before create_all / migrations see the metadata
    from . import models  # noqa: F401

    from .blueprints.auth import bp as auth_bp
    from .blueprints.feedback import bp as feedback_bp

    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(feedback_bp, url_prefix="/feedback")

    @app.get("/")
    def home():
        return redirect(url_for("feedback.index"))

    @limiter.exempt
    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}, 200

    # Error handlers (minimal)
    @app.errorhandler(404)
    def not_found(e):
        return ("Not Found", 404)

    @app.errorhandler(500)
    def server_error(e):
        return ("Internal Server Error", 500)

    # CSRF error handler (clean 400 instead of generic 500)
    from flask_wtf.csrf import CSRFError
    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        return (f"CSRF validation failed: {e.description}", 400)

    @app.errorhandler(403)
    def forbidden(e):
        accept = (request.headers.get("Accept") or "").lower()
        if "application/json" in accept:
            return {"error": "forbidden", "code": 403}, 403
        return render_template("errors/403.html"), 403

    # 429 Too Many Requests — consistent JSON/HTML with Retry-After
    @app.errorhandler(429)
    def too_many_requests(e):
        retry_after = getattr(e, "retry_after", None)
        headers = {}
        if retry_after is not None:
            headers["Retry-After"] = str(int(retry_after))
        wants_json = (
            "application/json" in (request.headers.get("Accept") or "").lower()
            or request.is_json
        )
        if wants_json:
            payload = {"error": "rate_limited", "code": 429}
            if retry_after is not None:
                payload["retry_after"] = int(retry_after)
            return (payload, 429, headers)
        return (render_template("errors/429.html", retry_after=retry_after), 429, headers)

    # CLI commands (ops-grade utilities)
    from .cli import register_cli
    register_cli(app)

    if not app.config.get("FEEDBACK_API_AUTHENTICATE_HEADER"):
        app.logger.warning("FEEDBACK_API_AUTHENTICATE_HEADER missing; Feedback API calls will be rejected")

    return app
