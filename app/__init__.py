"""
Print Shop Back Office - Application Package

This package contains the HTTP layer:
- api/: HTTP route handlers (Flask Blueprints)
- utils/: Shared helpers for the blueprints

Costing logic lives in services/ and is pure Python; the app factory and
core Flask setup remain in app_init.py at the project root.
"""

import logging

from app.api.jobs import jobs_bp
from app.api.expenses import expenses_bp
from app.api.customers import customers_bp

logger = logging.getLogger(__name__)


def register_blueprints(app):
    """
    Register all API blueprints with the Flask app.
    Called from create_app() after infrastructure setup.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(jobs_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(customers_bp)
    logger.info("Registered API blueprints: jobs, expenses, customers")


__all__ = ['register_blueprints', 'app', 'jobs_bp', 'expenses_bp', 'customers_bp']


# ==============================================================================
# WSGI APP EXPORT FOR GUNICORN
# ==============================================================================
# Allows `gunicorn app:app`. The Flask app is created in application.py and
# loaded lazily to avoid a circular import.
# ==============================================================================

_flask_app = None


def __getattr__(name):
    """Lazy load the Flask app to avoid circular imports."""
    global _flask_app
    if name == 'app':
        if _flask_app is None:
            from application import app as flask_app
            _flask_app = flask_app
        return _flask_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
