# File: studyloop_app/config.py
# Application configuration, read from the environment.

import os

from dotenv import load_dotenv

load_dotenv()

# Project root (the directory holding the studyloop_app package)
BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))

# Default SQLite database location
DATABASE_PATH = os.path.join(BASE_DIR, "database", "studyloop.db")


class Config:
    """Configuration for the StudyLoop application."""

    SECRET_KEY = os.environ.get('SECRET_KEY')
    if not SECRET_KEY:
        # Fallback for development, env is preferred
        SECRET_KEY = 'dev-secret-key-replace-in-production'

    SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI') or f'sqlite:///{DATABASE_PATH}'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'connect_args': {'timeout': 30},
    }
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_DIR = os.environ.get('LOG_DIR')

    # Study engine
    STUDY_TIMED_CARD_SECONDS = int(os.environ.get('STUDY_TIMED_CARD_SECONDS', 30))
    STUDY_MASTERY_THRESHOLD = int(os.environ.get('STUDY_MASTERY_THRESHOLD', 80))
    STUDY_HISTORY_LIMIT = 10

    @classmethod
    def init_app(cls, app):
        """Create the directories the configured database needs."""
        uri = app.config.get('SQLALCHEMY_DATABASE_URI', '')
        if uri == f'sqlite:///{DATABASE_PATH}':
            os.makedirs(os.path.dirname(DATABASE_PATH), exist_ok=True)
