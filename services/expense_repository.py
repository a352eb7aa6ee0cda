"""
Expense Repository - Database access layer for recorded expense transactions.

Also serves as the Expense Registry the costing engine consults when a cost
line is linked to a transaction.
"""

import logging
from datetime import datetime, date
from typing import List, Optional, Dict
from sqlalchemy.orm import Session

from database.models import Expense

logger = logging.getLogger(__name__)


class ExpenseRepository:
    """Repository for expense database operations."""

    def __init__(self, session: Session, organization_id: str):
        self.session = session
        self.organization_id = organization_id

    def _get(self, expense_id: str) -> Optional[Expense]:
        return self.session.query(Expense).filter(
            Expense.id == expense_id,
            Expense.organization_id == self.organization_id
        ).first()

    def list_expenses(self, start_date: date = None, end_date: date = None) -> List[Dict]:
        """List expenses, newest first, optionally within a date range."""
        query = self.session.query(Expense).filter(
            Expense.organization_id == self.organization_id
        )
        if start_date:
            query = query.filter(Expense.date >= start_date)
        if end_date:
            query = query.filter(Expense.date <= end_date)
        expenses = query.order_by(Expense.date.desc(), Expense.created_at.desc()).all()
        return [e.to_dict() for e in expenses]

    def get_expense(self, expense_id: str) -> Optional[Dict]:
        """Get an expense by ID."""
        expense = self._get(expense_id)
        return expense.to_dict() if expense else None

    def find(self, transaction_id: str) -> Optional[Dict]:
        """
        Look up a transaction for a cost line

        Returns:
            {id, description, amount, date} or None when not found
        """
        if not transaction_id:
            return None
        expense = self._get(transaction_id)
        if not expense:
            return None
        return {
            'id': expense.id,
            'description': expense.description,
            'amount': expense.amount or 0,
            'date': expense.date.isoformat() if expense.date else None
        }

    def create_expense(self, data: Dict) -> Dict:
        """Record a new expense."""
        expense_date = data.get('date')
        if isinstance(expense_date, str):
            try:
                expense_date = datetime.fromisoformat(expense_date).date()
            except ValueError:
                expense_date = None

        expense = Expense(
            organization_id=self.organization_id,
            date=expense_date or date.today(),
            description=data.get('description', ''),
            amount=data.get('amount', 0),
            debit_account_id=data.get('debit_account_id'),
            credit_account_id=data.get('credit_account_id')
        )
        self.session.add(expense)
        self.session.flush()
        logger.info(f"Created expense: {expense.id}")
        return expense.to_dict()

    def delete_expense(self, expense_id: str) -> bool:
        """
        Delete an expense.

        Cost lines that captured it keep their snapshot of description and amount.
        """
        expense = self._get(expense_id)
        if not expense:
            return False
        self.session.delete(expense)
        self.session.flush()
        logger.info(f"Deleted expense: {expense_id}")
        return True
