"""
SQLAlchemy models for the print shop back office.
Defines the record store tables the job costing engine reads from and writes to.
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Text, Integer, Float, Boolean, DateTime, Date,
    ForeignKey, JSON, Index
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from database.connection import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in development and tests)
JSONType = JSON().with_variant(JSONB(), 'postgresql')

JOB_STATUSES = ('pending', 'designing', 'printing', 'completed', 'delivered')


def generate_uuid():
    """Generate a new UUID."""
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


# =============================================================================
# ORGANIZATION (Multi-tenant foundation)
# =============================================================================

class Organization(Base):
    """
    Organization/Company - foundation for multi-tenant support.
    For now, we use a single default organization.
    """
    __tablename__ = 'organizations'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False)
    settings = Column(JSONType, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    customers = relationship("Customer", back_populates="organization")
    job_orders = relationship("JobOrder", back_populates="organization")
    expenses = relationship("Expense", back_populates="organization")

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'settings': self.settings or {},
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


# =============================================================================
# CUSTOMERS
# =============================================================================

class Customer(Base):
    """Customer records."""
    __tablename__ = 'customers'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(36), ForeignKey('organizations.id'), nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    address = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    organization = relationship("Organization", back_populates="customers")
    job_orders = relationship("JobOrder", back_populates="customer")

    __table_args__ = (
        Index('ix_customers_organization', 'organization_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'organization_id': self.organization_id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


# =============================================================================
# JOB ORDERS
# =============================================================================

class JobOrder(Base):
    """
    Print job orders.

    Each job exclusively owns one estimated and one actual cost breakdown,
    stored as JSON. The estimated breakdown may still be in the legacy flat
    format; the costing engine normalizes it on load.
    """
    __tablename__ = 'job_orders'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(36), ForeignKey('organizations.id'), nullable=False)
    customer_id = Column(String(36), ForeignKey('customers.id'))
    job_name = Column(String(255), nullable=False)
    order_date = Column(Date)
    due_date = Column(Date)
    status = Column(String(50), default='pending')  # pending, designing, printing, completed, delivered
    description = Column(Text)
    quantity = Column(Integer, default=1)
    paper_type = Column(String(255))
    size = Column(String(100))
    finishing = Column(String(255))
    price = Column(Float, default=0)
    notes = Column(Text)
    materials_used = Column(JSONType, default=list)
    inventory_consumed = Column(Boolean, default=False)
    invoice_id = Column(String(36))
    estimated_cost_breakdown = Column(JSONType)
    actual_cost_breakdown = Column(JSONType)
    estimated_cost = Column(Float)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    organization = relationship("Organization", back_populates="job_orders")
    customer = relationship("Customer", back_populates="job_orders")

    __table_args__ = (
        Index('ix_job_orders_organization', 'organization_id'),
        Index('ix_job_orders_customer', 'customer_id'),
        Index('ix_job_orders_status', 'status'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'organization_id': self.organization_id,
            'customer_id': self.customer_id,
            'customer_name': self.customer.name if self.customer else None,
            'job_name': self.job_name,
            'order_date': _iso(self.order_date),
            'due_date': _iso(self.due_date),
            'status': self.status,
            'description': self.description,
            'quantity': self.quantity,
            'paper_type': self.paper_type,
            'size': self.size,
            'finishing': self.finishing,
            'price': self.price or 0,
            'notes': self.notes,
            'materials_used': self.materials_used or [],
            'inventory_consumed': bool(self.inventory_consumed),
            'invoice_id': self.invoice_id,
            'estimated_cost_breakdown': self.estimated_cost_breakdown,
            'actual_cost_breakdown': self.actual_cost_breakdown,
            'estimated_cost': self.estimated_cost,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


# =============================================================================
# EXPENSES
# =============================================================================

class Expense(Base):
    """Recorded expense transactions. Job cost lines may link to these."""
    __tablename__ = 'expenses'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(36), ForeignKey('organizations.id'), nullable=False)
    date = Column(Date)
    description = Column(String(500), nullable=False)
    amount = Column(Float, nullable=False, default=0)
    debit_account_id = Column(String(36))   # The expense account
    credit_account_id = Column(String(36))  # Where the money came from (cash, bank)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    organization = relationship("Organization", back_populates="expenses")

    __table_args__ = (
        Index('ix_expenses_organization', 'organization_id'),
        Index('ix_expenses_date', 'date'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'organization_id': self.organization_id,
            'date': _iso(self.date),
            'description': self.description,
            'amount': self.amount or 0,
            'debit_account_id': self.debit_account_id,
            'credit_account_id': self.credit_account_id,
            'created_at': _iso(self.created_at)
        }
