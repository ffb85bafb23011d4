import os
from logging.config import dictConfig

def init_logging(app):
    """Structured logs (JSON) in staging/prod; plain console elsewhere."""
    app_env = (os.getenv("APP_ENV", "development") or "development").lower()
    level = (app.config.get("LOG_LEVEL") or "INFO").upper()
    fmt = "%(asctime)s %(levelname)s %(name)s %(message)s"
    if app_env in ("staging", "production"):
        formatter = {"()": "pythonjsonlogger.json.JsonFormatter", "fmt": fmt}
    else:
        formatter = {"format": fmt}
    dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "handlers": {"wsgi": {"class": "logging.StreamHandler", "formatter": "default"}},
        "root": {"level": level, "handlers": ["wsgi"]},
    })

def init_sentry(app):
    """Wire Sentry if DSN present; no-op otherwise."""
    dsn = os.getenv("SENTRY_DSN")
    if not dsn:
        return
    import sentry_sdk
    from sentry_sdk.integrations.flask import FlaskIntegration
    sentry_sdk.init(
        dsn=dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=float(os.getenv("SENTRY_TRACES", "0.0")),
        environment=os.getenv("APP_ENV", "development"),
        # feedback rows carry visitor contact details
        send_default_pii=False,
    )
