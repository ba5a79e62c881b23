import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "libraryhub-secret")

    SQLALCHEMY_DATABASE_URI = os.getenv("SQLALCHEMY_DATABASE_URI", "sqlite:///libraryhub.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Access token in the Authorization header for API clients, in a cookie for the browser UI
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "libraryhub-jwt-secret-change-me-please")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES_HOURS", "24")))
    JWT_TOKEN_LOCATION = ["headers", "cookies"]
    JWT_COOKIE_SECURE = _flag("JWT_COOKIE_SECURE")
    JWT_COOKIE_SAMESITE = os.getenv("JWT_COOKIE_SAMESITE", "Lax")

    ADMIN_SECRET_KEY = os.getenv("ADMIN_SECRET_KEY", "admin-secret-dev")

    DEFAULT_LOAN_DAYS = int(os.getenv("DEFAULT_LOAN_DAYS", "14"))
    MAX_LOAN_DAYS = int(os.getenv("MAX_LOAN_DAYS", "60"))

    SCHEDULER_ENABLED = _flag("SCHEDULER_ENABLED", "1")
    OVERDUE_SWEEP_MINUTES = int(os.getenv("OVERDUE_SWEEP_MINUTES", "10"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    # pooled sqlite connections are shared between worker threads in the ledger tests
    SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"check_same_thread": False, "timeout": 15}}
    JWT_SECRET_KEY = "libraryhub-test-jwt-secret-0123456789abcdef"
    ADMIN_SECRET_KEY = "test-admin-secret"
    SCHEDULER_ENABLED = False
    LOG_LEVEL = "DEBUG"
