from flask import Flask
from flasgger import Swagger
from flask_cors import CORS
import logging

from .config import DEV_JWT_SECRET, get_config
from .errors import register_error_handlers
from models import storage
from models.session_store import build_session_store
from models.user import User
from services.auth import AuthService, build_strategy
from utils.security import TokenCodec, verify_password

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Ritmo API",
        "version": "1.0.0",
        "description": "Accounts, session tokens, level progression and gem balances.",
    },
    "basePath": "/",
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def build_auth_service(config, session_store) -> AuthService:
    """Wire the token codec, the token strategy and the user lookup from config."""
    codec = TokenCodec(
        config["JWT_SECRET"],
        algorithm=config["JWT_ALGORITHM"],
        issuer=config.get("JWT_ISSUER"),
    )
    return AuthService(
        codec=codec,
        strategy=build_strategy(config["TOKEN_STRATEGY"], session_store),
        find_user=lambda username: storage.find_by(User, username=username),
        verify_password=verify_password,
        access_ttl=int(config["ACCESS_TOKEN_EXPIRES"].total_seconds()),
        refresh_ttl=int(config["REFRESH_TOKEN_EXPIRES"].total_seconds()),
    )


def create_app(config_name: str | None = None, session_store=None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    `session_store` overrides the store selected by SESSION_STORE.
    """
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if app.config["APP_ENV"] in ("prod", "production") and not app.config["TESTING"] \
            and app.config["JWT_SECRET"] == DEV_JWT_SECRET:
        raise RuntimeError("JWT_SECRET must be set in production")

    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)
    register_error_handlers(app)

    storage.reload(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))

    if session_store is None and app.config["TOKEN_STRATEGY"] != "stateless":
        session_store = build_session_store(app.config)
    app.extensions["session_store"] = session_store
    app.extensions["auth_service"] = build_auth_service(app.config, session_store)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .economy import bp as economy_bp

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(auth_bp, url_prefix="/api/user")
    app.register_blueprint(users_bp, url_prefix="/api/user")
    app.register_blueprint(economy_bp, url_prefix="/api/economy")

    @app.teardown_appcontext
    def remove_session(exception=None):
        # scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Ritmo API",
            "docs": "/apidocs/",
            "health": "/api/health",
        }, 200

    return app
