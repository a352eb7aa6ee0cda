"""
Database seeding for the print shop back office.
Creates the default organization if the database is empty.
"""

import logging
from database.connection import get_db_session
from database.models import Organization

logger = logging.getLogger(__name__)

DEFAULT_ORG_NAME = "Print Shop"
DEFAULT_ORG_SLUG = "print-shop"


def seed_default_organization(session, name=DEFAULT_ORG_NAME):
    """Create default organization if none exists."""
    org = session.query(Organization).filter_by(slug=DEFAULT_ORG_SLUG).first()
    if org:
        logger.info(f"Organization already exists: {org.name}")
        return org

    org = Organization(
        name=name,
        slug=DEFAULT_ORG_SLUG,
        settings={'currency': 'USD'}
    )
    session.add(org)
    session.flush()
    logger.info(f"Created default organization: {org.name}")
    return org


def seed_database(name=DEFAULT_ORG_NAME):
    """
    Seed the database with default data if empty.
    Call this at application startup.

    Returns:
        ID of the default organization
    """
    try:
        with get_db_session() as session:
            org = seed_default_organization(session, name)
            logger.info("Database seeding completed successfully")
            return org.id
    except Exception as e:
        logger.error(f"Database seeding failed: {e}")
        raise


def get_default_organization_id():
    """Get the ID of the default organization."""
    with get_db_session() as session:
        org = session.query(Organization).filter_by(slug=DEFAULT_ORG_SLUG).first()
        if org:
            return org.id
        org = session.query(Organization).first()
        return org.id if org else None
