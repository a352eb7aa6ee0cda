"""
Expense API Routes Blueprint

Recorded expense transactions that cost lines can be linked to:
- /api/expenses       - list (optional start_date/end_date) / create
- /api/expenses/<id>  - get / delete
"""

import logging
from datetime import date
from flask import Blueprint, request, jsonify

from app.utils import get_organization_id, get_json_body
from database.connection import get_db_session
from services.expense_repository import ExpenseRepository
from validators import format_validation_error, validate_expense_request, validate_iso_date

logger = logging.getLogger(__name__)

expenses_bp = Blueprint('expenses_bp', __name__)


@expenses_bp.route('/api/expenses', methods=['GET', 'POST'])
def handle_expenses():
    """List or record expenses"""
    if request.method == 'GET':
        bounds = {}
        for field in ('start_date', 'end_date'):
            value = request.args.get(field)
            if value:
                is_valid, error = validate_iso_date(value)
                if not is_valid:
                    return jsonify(format_validation_error(field, error)), 400
                bounds[field] = date.fromisoformat(value)
    else:
        data = get_json_body()
        is_valid, error = validate_expense_request(data)
        if not is_valid:
            return jsonify(format_validation_error('expense', error)), 400

    try:
        with get_db_session() as session:
            repo = ExpenseRepository(session, get_organization_id())
            if request.method == 'GET':
                expenses = repo.list_expenses(**bounds)
                return jsonify({'success': True, 'expenses': expenses, 'count': len(expenses)})

            expense = repo.create_expense(data)
            return jsonify({'success': True, 'expense': expense}), 201
    except Exception as e:
        logger.error(f"Error handling expenses: {str(e)}")
        return jsonify({'success': False, 'error': str(e)}), 500


@expenses_bp.route('/api/expenses/<expense_id>', methods=['GET', 'DELETE'])
def handle_expense(expense_id):
    """Single expense lookup or removal"""
    try:
        with get_db_session() as session:
            repo = ExpenseRepository(session, get_organization_id())
            if request.method == 'GET':
                expense = repo.get_expense(expense_id)
                if not expense:
                    return jsonify({'success': False, 'error': f'Expense {expense_id} not found'}), 404
                return jsonify({'success': True, 'expense': expense})

            if not repo.delete_expense(expense_id):
                return jsonify({'success': False, 'error': f'Expense {expense_id} not found'}), 404
            return jsonify({'success': True, 'message': 'Expense deleted'})
    except Exception as e:
        logger.error(f"Error handling expense {expense_id}: {str(e)}")
        return jsonify({'success': False, 'error': str(e)}), 500
