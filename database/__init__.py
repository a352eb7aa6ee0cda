"""
Database package for the print shop back office.
Provides SQLAlchemy models, connection management, and session handling.
"""

from database.connection import (
    Base,
    configure_engine,
    get_db_session,
    init_db,
    drop_db,
    check_db_connection
)

from database.models import (
    Organization,
    Customer,
    JobOrder,
    Expense,
    JOB_STATUSES
)

__all__ = [
    # Connection
    'Base',
    'configure_engine',
    'get_db_session',
    'init_db',
    'drop_db',
    'check_db_connection',
    # Models
    'Organization',
    'Customer',
    'JobOrder',
    'Expense',
    'JOB_STATUSES'
]
