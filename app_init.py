"""
Application Initialization Module
Initializes the Flask app with all infrastructure components
"""
import os
from flask import Flask
from config import get_config
from logging_config import setup_logging, get_logger
from ai_service import AIService
from security import setup_security
from health_checks import register_health_checks
from database.connection import configure_engine, init_db
from database.seed import seed_database

logger = get_logger(__name__)


def create_app(config_name=None):
    """
    Application factory that creates and configures Flask app with all infrastructure

    Args:
        config_name: 'development', 'production' or 'testing'; defaults to FLASK_ENV

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)

    config_class = get_config(config_name)
    app.config.from_object(config_class)

    setup_logging(app)

    logger.info("=" * 60)
    logger.info("Initializing Print Shop Back Office")
    logger.info("=" * 60)
    logger.info(f"Environment: {config_name or os.environ.get('FLASK_ENV', 'development')}")
    logger.info(f"Debug mode: {app.debug}")

    # Setup security (CORS, headers, error handlers)
    setup_security(app, app.config)

    initialize_database(app)

    app.ai_service = initialize_ai_service(app)

    register_health_checks(app)

    from app import register_blueprints
    register_blueprints(app)

    logger.info("Application initialization complete")
    logger.info("=" * 60)

    return app


def initialize_database(app):
    """
    Bind the store to the configured database, create missing tables and seed
    the default organization

    Args:
        app: Flask application instance
    """
    database_url = app.config.get('DATABASE_URL')
    if not database_url:
        raise RuntimeError("DATABASE_URL not configured. Set the DATABASE_URL environment variable.")

    configure_engine(database_url)
    init_db()
    app.config['ORGANIZATION_ID'] = seed_database(app.config.get('COMPANY_NAME', 'Print Shop'))
    logger.info(f"Database ready, organization {app.config['ORGANIZATION_ID']}")


def initialize_ai_service(app):
    """
    Initialize centralized AI service manager

    Args:
        app: Flask application instance

    Returns:
        AIService instance
    """
    ai_service = AIService(app.config)

    if ai_service.is_available():
        logger.info("AI Services initialized: Claude")
    else:
        logger.warning("No AI services configured - check ANTHROPIC_API_KEY")

    return ai_service


def get_ai_service(app):
    """
    Get the AI service instance from the app

    Args:
        app: Flask application instance

    Returns:
        AIService instance
    """
    if not hasattr(app, 'ai_service'):
        logger.warning("AI service not initialized, creating new instance")
        app.ai_service = AIService(app.config)

    return app.ai_service
