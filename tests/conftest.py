"""
Pytest configuration and shared fixtures
"""
import os
import sys
import pytest
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture
def app_config():
    """Fixture providing test configuration"""
    from config import TestingConfig
    return TestingConfig


@pytest.fixture
def test_env_vars():
    """Fixture providing test environment variables"""
    original_env = os.environ.copy()

    os.environ['FLASK_ENV'] = 'testing'
    os.environ['SECRET_KEY'] = 'a3f9c1e07b5d4c2e9f8a6b4d2c0e1f3a5b7c9d1e'
    os.environ['ANTHROPIC_API_KEY'] = 'test-anthropic-key'

    yield

    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def app(tmp_path, monkeypatch):
    """Flask app on a fresh in-memory database"""
    from config import TestingConfig
    from app_init import create_app
    from database import drop_db

    monkeypatch.setattr(TestingConfig, 'LOG_DIR', str(tmp_path / 'logs'))
    yield create_app('testing')
    drop_db()


@pytest.fixture
def client(app):
    """Flask test client"""
    return app.test_client()


@pytest.fixture
def org_id(app):
    """ID of the seeded default organization"""
    return app.config['ORGANIZATION_ID']


@pytest.fixture
def db_session(app):
    """Database session that commits when the test finishes"""
    from database.connection import get_db_session

    with get_db_session() as session:
        yield session


@pytest.fixture
def legacy_breakdown():
    """Legacy flat breakdown totalling 415"""
    return {
        'paper': 100,
        'ctp': 50,
        'printing': 200,
        'binding': 30,
        'delivery': 20,
        'otherExpenses': [
            {'id': 'exp-1', 'description': 'Courier', 'amount': 15}
        ]
    }


@pytest.fixture
def current_breakdown():
    """Current-format breakdown: 1000 standard, 200 labor, 50 other, 10% overhead"""
    return {
        'paper': {'quantity': 10, 'rate': 50, 'total': 500},
        'ctp': {'quantity': 4, 'rate': 25, 'total': 100},
        'printing': {'quantity': 1, 'rate': 300, 'total': 300},
        'binding': {'quantity': 1, 'rate': 60, 'total': 60},
        'delivery': {'quantity': 1, 'rate': 40, 'total': 40},
        'labor': [
            {'id': 'labor-1', 'description': 'Press operator', 'hours': 8, 'rate': 25, 'total': 200}
        ],
        'overhead': {'quantity': 10, 'rate': 1250, 'total': 125},
        'other_expenses': [
            {'id': 'other-1', 'description': 'Lamination film', 'quantity': 2, 'rate': 25, 'total': 50}
        ]
    }


@pytest.fixture
def mock_ai_response():
    """Fixture providing mock AI response"""
    class MockResponse:
        def __init__(self):
            self.stop_reason = 'end_turn'
            self.content = [
                type('Content', (), {
                    'type': 'text',
                    'text': 'Paper is the largest cost driver.'
                })()
            ]

    return MockResponse()
