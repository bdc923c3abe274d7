"""
Centralized logging configuration for StudyLoop.

Human-readable console output, plus an optional rotating log file when
``LOG_DIR`` is configured. The app logger is named after the package, so
module loggers (``logging.getLogger(__name__)``) propagate into it.
"""

import logging
import logging.handlers
import os

from flask import Flask
from flask.logging import default_handler

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(app: Flask) -> None:
    """Configure application logging if it has not been configured yet."""

    app.logger.removeHandler(default_handler)
    if any(getattr(handler, '_studyloop', False) for handler in app.logger.handlers):
        app.logger.setLevel(_level(app))
        return

    level = _level(app)
    formatter = logging.Formatter(LOG_FORMAT)

    app.logger.setLevel(level)
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    handler._studyloop = True
    app.logger.addHandler(handler)

    log_dir = app.config.get('LOG_DIR')
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, 'studyloop.log'),
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding='utf-8',
        )
        file_handler.setFormatter(formatter)
        file_handler._studyloop = True
        app.logger.addHandler(file_handler)

    app.logger.propagate = False
    app.logger.info("Flask app logger configured (level=%s).", logging.getLevelName(level))


def _level(app: Flask) -> int:
    return getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
