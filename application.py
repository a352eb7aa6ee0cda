"""
Print Shop Back Office Application

Job order costing service: estimated and actual cost breakdowns per print
job, profitability and budget variance, cost sheet PDFs and AI drafted cost
analyses.

MODULAR ARCHITECTURE:
- app_init.py: Application factory (config, logging, security, database, AI)
- app/api/: HTTP route handlers (Flask Blueprints)
- services/: Costing engine, profitability and repositories
- database/: SQLAlchemy models, connection and seeding

Tables are created on startup; schema changes go through Alembic
(`alembic upgrade head`).
"""
import os

from app_init import create_app

app = create_app()


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    app.run(host='0.0.0.0', port=port, debug=False)
