"""
Centralized Configuration for the Print Shop Back Office
Manages environment-specific settings, secrets, and service configurations.
"""
import os


def _database_url(default):
    url = os.environ.get('DATABASE_URL', default)
    # Handle Render's postgres:// vs postgresql:// URL format
    if url and url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    """Base configuration with defaults"""

    # Flask Settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.urandom(32).hex()
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024  # 5MB max request body
    JSON_SORT_KEYS = False

    # CORS Settings
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    CORS_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS']
    CORS_ALLOW_HEADERS = ['Content-Type', 'Authorization', 'X-Requested-With']

    # Database Settings
    DATABASE_URL = _database_url('sqlite:///backoffice.db')

    # Company details printed on cost sheets
    COMPANY_NAME = os.environ.get('COMPANY_NAME', 'Print Shop')
    CURRENCY_SYMBOL = os.environ.get('CURRENCY_SYMBOL', '$')

    # AI Service
    ANTHROPIC_API_KEY = os.environ.get('ANTHROPIC_API_KEY')

    # AI Model Configuration
    AI_MODELS = {
        'claude': {
            'model': os.environ.get('AI_MODEL', 'claude-sonnet-4-20250514'),
            'max_tokens': 1024,
            'temperature': 0.7,
        },
    }

    # AI Retry Configuration
    AI_RETRY_ATTEMPTS = int(os.environ.get('AI_RETRY_ATTEMPTS', '3'))
    AI_RETRY_DELAY = int(os.environ.get('AI_RETRY_DELAY', '2'))  # seconds
    AI_TIMEOUT = int(os.environ.get('AI_TIMEOUT', '120'))  # seconds

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_FILE = os.environ.get('LOG_FILE', 'app.log')
    LOG_DIR = os.environ.get('LOG_DIR', 'logs')


class DevelopmentConfig(Config):
    """Development-specific configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = 'DEBUG'
    # Allow all CORS in development
    CORS_ORIGINS = ['*']


class ProductionConfig(Config):
    """Production-specific configuration"""
    DEBUG = False
    TESTING = False
    DATABASE_URL = _database_url(None)
    # Strict CORS in production
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'https://backoffice.example.com').split(',')
    PREFERRED_URL_SCHEME = 'https'
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class TestingConfig(Config):
    """Testing-specific configuration"""
    DEBUG = True
    TESTING = True
    DATABASE_URL = 'sqlite://'  # In-memory database
    ANTHROPIC_API_KEY = None
    AI_RETRY_DELAY = 0
    LOG_LEVEL = 'WARNING'


# Configuration selector
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}


def get_config(name=None):
    """Get configuration by name, falling back to the FLASK_ENV environment variable"""
    env = name or os.environ.get('FLASK_ENV', 'development')
    return config_by_name.get(env, DevelopmentConfig)
