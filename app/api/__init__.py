"""
API Blueprints Package

All HTTP route handlers for the application, organized by domain.
Each module defines a Flask Blueprint registered in app/__init__.py.

BLUEPRINT REFERENCE:
====================

- jobs.py      : Job orders, cost breakdowns (preview edits, save, copy
                 estimate to actual), cost sheet PDF, AI cost analysis
- expenses.py  : Recorded expense transactions (the registry cost lines
                 link to)
- customers.py : Customers

Health and monitoring routes live in health_checks.py at the project root.
"""

# All blueprints are imported and registered in app/__init__.py
# This file serves as documentation only

__all__ = []
