"""
Environment-aware configuration.
Values are read once here; create_app() builds the token codec, session
store and auth service from the selected class and hands them around
explicitly.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present

DEV_JWT_SECRET = "dev-secret-change-me"


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    DEBUG = False
    TESTING = False
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    # jwt
    JWT_SECRET = os.getenv("JWT_SECRET", DEV_JWT_SECRET)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "ritmo-api")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "900")))
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", "2592000")))
    # "session": tokens must match the session store; "stateless": signature only
    TOKEN_STRATEGY = os.getenv("TOKEN_STRATEGY", "session")
    # session store
    SESSION_STORE = os.getenv("SESSION_STORE", "redis")
    REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0")
    REDIS_SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", "5"))
    # user record store
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///ritmo.db")
    SQL_ECHO = False


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SQL_ECHO = os.getenv("SQL_ECHO", "").lower() in ("1", "true", "yes")


class ProductionConfig(BaseConfig):
    DEBUG = False


class TestingConfig(BaseConfig):
    TESTING = True
    JWT_SECRET = "test-secret-key-for-testing-only"
    SESSION_STORE = "memory"
    TOKEN_STRATEGY = "session"
    DATABASE_URL = "sqlite://"


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/prod/test).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
