"""Bootstrap helpers for configuring the Flask application."""

from __future__ import annotations

from flask import Flask

from ..extensions import csrf_protect, db, login_manager
from .error_handlers import register_error_handlers
from .logging_config import configure_logging
from .module_registry import register_default_modules

__all__ = [
    "configure_logging",
    "register_extensions",
    "register_user_loader",
    "register_error_handlers",
    "register_blueprints",
    "initialize_database",
]


def register_extensions(app: Flask) -> None:
    """Initialize shared extensions with the Flask app instance."""

    db.init_app(app)
    login_manager.init_app(app)
    csrf_protect.init_app(app)


def register_user_loader(app: Flask) -> None:
    """Connect Flask-Login to the user table."""

    @login_manager.user_loader
    def load_user(user_id: str):
        from ..models import User

        return db.session.get(User, user_id)


def register_blueprints(app: Flask) -> None:
    """Register all default blueprints with the app."""

    register_default_modules(app)


def initialize_database(app: Flask) -> None:
    """Create database tables if they do not exist yet."""

    from .. import models  # noqa: F401  (registers the mappers)

    db.create_all()
    app.logger.info("Database tables ready at %s", app.config.get('SQLALCHEMY_DATABASE_URI'))
