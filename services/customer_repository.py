"""
Customer Repository - Database access layer for customers.
"""

import logging
from typing import List, Optional, Dict
from sqlalchemy.orm import Session

from database.models import Customer

logger = logging.getLogger(__name__)


class CustomerRepository:
    """Repository for customer database operations."""

    def __init__(self, session: Session, organization_id: str):
        self.session = session
        self.organization_id = organization_id

    def list_customers(self) -> List[Dict]:
        """List customers by name."""
        customers = self.session.query(Customer).filter(
            Customer.organization_id == self.organization_id
        ).order_by(Customer.name).all()
        return [c.to_dict() for c in customers]

    def get_customer(self, customer_id: str) -> Optional[Dict]:
        """Get a customer by ID."""
        customer = self.session.query(Customer).filter(
            Customer.id == customer_id,
            Customer.organization_id == self.organization_id
        ).first()
        return customer.to_dict() if customer else None

    def create_customer(self, data: Dict) -> Dict:
        """Create a new customer."""
        customer = Customer(
            organization_id=self.organization_id,
            name=data.get('name', ''),
            email=data.get('email'),
            phone=data.get('phone'),
            address=data.get('address')
        )
        self.session.add(customer)
        self.session.flush()
        logger.info(f"Created customer: {customer.id}")
        return customer.to_dict()
