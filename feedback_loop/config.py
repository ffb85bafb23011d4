import os

class BaseConfig:
    # Secrets (env in prod; dev/test may use defaults)
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-not-secure")
    WTF_CSRF_SECRET_KEY = SECRET_KEY
    WTF_CSRF_TIME_LIMIT = None  # tag forms stay open in modals for a while

    # Database (env in prod; dev/test may use default)
    try:
        from dotenv import dotenv_values
        _ENV_FALLBACK = dotenv_values(".env")
    except Exception:
        _ENV_FALLBACK = {}
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL") or _ENV_FALLBACK.get("DATABASE_URL") or "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging / misc
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Cookies: secure-by-default
    SESSION_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    # Flask-Limiter default: off globally; prefer per-route limits
    RATELIMIT_DEFAULT = None

    # --- Feedback API ---
    FEEDBACK_API_BASE_URL = os.getenv("FEEDBACK_API_BASE_URL", "http://localhost:8000/")
    FEEDBACK_API_AUTHENTICATE_HEADER = os.getenv("FEEDBACK_API_AUTHENTICATE_HEADER", "")
    FEEDBACK_API_TIMEOUT = float(os.getenv("FEEDBACK_API_TIMEOUT", "10.0"))
    FEEDBACK_PER_PAGE = int(os.getenv("FEEDBACK_PER_PAGE", "40"))

    # --- Watched content (host CMS flagging tables) ---
    WATCH_FLAG_ID = os.getenv("WATCH_FLAG_ID", "watch_content")
    # Where "Source Page" links point; {nid} is replaced with the node id
    NODE_URL_PATTERN = os.getenv("NODE_URL_PATTERN", "/node/{nid}")

class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")
    SESSION_COOKIE_SECURE = False
    REMEMBER_COOKIE_SECURE = False

class ProductionConfig(BaseConfig):
    DEBUG = False
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "WARNING")
    SESSION_COOKIE_SECURE = True
    REMEMBER_COOKIE_SECURE = True
    SESSION_COOKIE_SAMESITE = os.environ.get("SESSION_COOKIE_SAMESITE", "Lax")

class TestingConfig(BaseConfig):
    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get("TEST_DATABASE_URL", "sqlite:///:memory:")
    SESSION_COOKIE_SECURE = False
    REMEMBER_COOKIE_SECURE = False
    FEEDBACK_API_BASE_URL = "http://feedback-api.test/"
    FEEDBACK_API_AUTHENTICATE_HEADER = "test-token"
    FEEDBACK_PER_PAGE = 10
    RATELIMIT_ENABLED = False

_ENV_MAP = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}

def get_config():
    env = os.environ.get("APP_ENV", "development").lower()
    return _ENV_MAP.get(env, DevelopmentConfig)
