"""
Helper utility functions shared by the API blueprints.
"""

from flask import current_app, request

from database.seed import get_default_organization_id


def get_organization_id():
    """
    Organization the current request is scoped to.

    The app factory stores the seeded organization in ORGANIZATION_ID; fall
    back to a lookup when the app was built without seeding.
    """
    org_id = current_app.config.get('ORGANIZATION_ID')
    if not org_id:
        org_id = get_default_organization_id()
        current_app.config['ORGANIZATION_ID'] = org_id
    return org_id


def get_json_body():
    """
    Parsed JSON request body.

    Returns:
        The decoded body, or None when it is missing or not JSON
    """
    return request.get_json(silent=True)
