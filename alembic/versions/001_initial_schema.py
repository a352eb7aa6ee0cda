"""Initial database schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates the organization, customer, job order and expense tables for the
print shop back office.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def upgrade() -> None:
    # Organizations table
    op.create_table('organizations',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(100), nullable=False),
        sa.Column('settings', JSONType),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('slug')
    )

    # Customers table
    op.create_table('customers',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('organization_id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('address', sa.Text()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_customers_organization', 'customers', ['organization_id'])

    # Job orders table, each row owns its estimated and actual breakdowns
    op.create_table('job_orders',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('organization_id', sa.String(36), nullable=False),
        sa.Column('customer_id', sa.String(36)),
        sa.Column('job_name', sa.String(255), nullable=False),
        sa.Column('order_date', sa.Date()),
        sa.Column('due_date', sa.Date()),
        sa.Column('status', sa.String(50), server_default='pending'),
        sa.Column('description', sa.Text()),
        sa.Column('quantity', sa.Integer(), server_default='1'),
        sa.Column('paper_type', sa.String(255)),
        sa.Column('size', sa.String(100)),
        sa.Column('finishing', sa.String(255)),
        sa.Column('price', sa.Float(), server_default='0'),
        sa.Column('notes', sa.Text()),
        sa.Column('materials_used', JSONType),
        sa.Column('inventory_consumed', sa.Boolean(), server_default=sa.false()),
        sa.Column('invoice_id', sa.String(36)),
        sa.Column('estimated_cost_breakdown', JSONType),
        sa.Column('actual_cost_breakdown', JSONType),
        sa.Column('estimated_cost', sa.Float()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_job_orders_organization', 'job_orders', ['organization_id'])
    op.create_index('ix_job_orders_customer', 'job_orders', ['customer_id'])
    op.create_index('ix_job_orders_status', 'job_orders', ['status'])

    # Expenses table
    op.create_table('expenses',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('organization_id', sa.String(36), nullable=False),
        sa.Column('date', sa.Date()),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False, server_default='0'),
        sa.Column('debit_account_id', sa.String(36)),
        sa.Column('credit_account_id', sa.String(36)),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['organization_id'], ['organizations.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_expenses_organization', 'expenses', ['organization_id'])
    op.create_index('ix_expenses_date', 'expenses', ['date'])


def downgrade() -> None:
    # Drop tables in reverse order of creation (respecting foreign keys)
    op.drop_table('expenses')
    op.drop_table('job_orders')
    op.drop_table('customers')
    op.drop_table('organizations')
