"""
Services package for the print shop back office.
Contains the costing engine and repository classes for database access.
"""

from services.customer_repository import CustomerRepository
from services.expense_repository import ExpenseRepository
from services.job_order_repository import JobOrderRepository

__all__ = [
    'CustomerRepository',
    'ExpenseRepository',
    'JobOrderRepository'
]
