"""
Utilities Package

Shared helper functions used across the application.
"""

from app.utils.helpers import (
    get_organization_id,
    get_json_body,
)

__all__ = [
    'get_organization_id',
    'get_json_body',
]
