# File: studyloop_app/modules/study/__init__.py
from flask import Blueprint

blueprint = Blueprint('study', __name__)

# Module Metadata
module_metadata = {
    'name': 'Study Sessions',
    'category': 'Core',
    'url_prefix': '/study',
    'enabled': True,
}


def setup_module(app):
    """Attach routes and signal listeners for the study module."""
    from .events import register_events

    register_events()
    app.logger.info("Study module initialized.")


from . import routes  # noqa: E402,F401
