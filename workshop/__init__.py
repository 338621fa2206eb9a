"""
Workshop Management System: job cards, parts inventory and invoicing.
"""
from datetime import timedelta

from flask import Flask
from flask_cors import CORS

from workshop.auth import jwt
from workshop.config import engine_options, get_settings
from workshop.database import db
from workshop.errors import register_error_handlers
from workshop.logging_config import configure_logging
from workshop.models import bcrypt
from workshop.routers import register_routers

__version__ = "1.0.0"


def create_app(overrides=None):
    """Application factory. ``overrides`` is applied on top of settings."""
    settings = get_settings()

    app = Flask(__name__)
    app.config['SECRET_KEY'] = settings.secret_key
    app.config['APP_NAME'] = settings.app_name
    app.config['APP_VERSION'] = settings.app_version
    app.config['SQLALCHEMY_DATABASE_URI'] = settings.database_url
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['JWT_SECRET_KEY'] = settings.jwt_secret_key
    app.config['JWT_ACCESS_TOKEN_EXPIRES'] = timedelta(minutes=settings.access_token_expire_minutes)
    app.config['CURRENCY'] = settings.currency
    app.config['DEADLOCK_RETRIES'] = settings.deadlock_retries
    app.config['DEADLOCK_BACKOFF_SECONDS'] = settings.deadlock_backoff_seconds
    app.config.update(overrides or {})
    app.config.setdefault(
        'SQLALCHEMY_ENGINE_OPTIONS',
        engine_options(app.config['SQLALCHEMY_DATABASE_URI'], settings),
    )

    configure_logging(app, settings.log_dir, settings.log_level)

    db.init_app(app)
    bcrypt.init_app(app)
    jwt.init_app(app)
    CORS(app, origins=settings.cors_origins, expose_headers=['X-CSRF-Token'])

    register_error_handlers(app)
    register_routers(app, settings.api_prefix)

    app.logger.info("%s v%s configured", settings.app_name, settings.app_version)
    return app
