"""
Customer API Routes Blueprint

- /api/customers       - list / create
- /api/customers/<id>  - get
"""

import logging
from flask import Blueprint, request, jsonify

from app.utils import get_organization_id, get_json_body
from database.connection import get_db_session
from services.customer_repository import CustomerRepository
from validators import format_validation_error, validate_customer_request

logger = logging.getLogger(__name__)

customers_bp = Blueprint('customers_bp', __name__)


@customers_bp.route('/api/customers', methods=['GET', 'POST'])
def handle_customers():
    """List or create customers"""
    try:
        with get_db_session() as session:
            repo = CustomerRepository(session, get_organization_id())
            if request.method == 'GET':
                customers = repo.list_customers()
                return jsonify({'success': True, 'customers': customers, 'count': len(customers)})

            data = get_json_body()
            is_valid, error = validate_customer_request(data)
            if not is_valid:
                return jsonify(format_validation_error('customer', error)), 400
            customer = repo.create_customer(data)
            return jsonify({'success': True, 'customer': customer}), 201
    except Exception as e:
        logger.error(f"Error handling customers: {str(e)}")
        return jsonify({'success': False, 'error': str(e)}), 500


@customers_bp.route('/api/customers/<customer_id>', methods=['GET'])
def get_customer(customer_id):
    """Get a single customer"""
    try:
        with get_db_session() as session:
            customer = CustomerRepository(session, get_organization_id()).get_customer(customer_id)
            if not customer:
                return jsonify({'success': False, 'error': f'Customer {customer_id} not found'}), 404
            return jsonify({'success': True, 'customer': customer})
    except Exception as e:
        logger.error(f"Error getting customer {customer_id}: {str(e)}")
        return jsonify({'success': False, 'error': str(e)}), 500
