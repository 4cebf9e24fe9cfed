import os

basedir = os.path.abspath(os.path.dirname(__file__))


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-production")
    APP_ENV = os.environ.get("APP_ENV", "development")

    # Database: use DATABASE_URL from environment (PostgreSQL in production), fallback to SQLite for local dev
    _db_url = os.environ.get("DATABASE_URL", f"sqlite:///{os.path.join(basedir, 'instance', 'esg_manager.db')}")
    # Heroku-style URLs use postgres:// but SQLAlchemy requires postgresql://
    if _db_url.startswith("postgres://"):
        _db_url = _db_url.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = _db_url
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
        "pool_size": 5,
        "max_overflow": 15,
    } if "DATABASE_URL" in os.environ else {}

    MAX_CONTENT_LENGTH = 10 * 1024 * 1024  # 10 MB request bodies

    # Bearer tokens for the JSON API
    JWT_SECRET = os.environ.get("JWT_SECRET", "dev-jwt-secret-change-in-production")
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRES_IN = os.environ.get("JWT_EXPIRES_IN", "7d")

    # Single origin allowed to call /api from a browser
    FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:5173")

    # Mock evaluation: "pending" only flips status, "random" assigns random pillar scores
    EVALUATION_MODE = os.environ.get("EVALUATION_MODE", "random")
    EVALUATION_DELAY = float(os.environ.get("EVALUATION_DELAY", "3"))
    EVALUATION_SEED = os.environ.get("EVALUATION_SEED") or None
    PASS_THRESHOLD = float(os.environ.get("PASS_THRESHOLD", "60"))

    # Session security
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    PERMANENT_SESSION_LIFETIME = 3600

    # Behind an HTTPS proxy these are set from the environment
    SESSION_COOKIE_SECURE = os.environ.get("RENDER", "") != ""
    PREFERRED_URL_SCHEME = "https" if os.environ.get("RENDER", "") else "http"
