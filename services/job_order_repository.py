"""
Job Order Repository - Database access layer for print job orders and their
estimated/actual cost breakdowns.
"""

import logging
from datetime import datetime, date
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session

from database.models import JobOrder, JOB_STATUSES
from services.cost_engine import (
    FORMAT_ABSENT,
    copy_estimated_to_actual,
    detect_format,
    grand_total,
    normalize_breakdown,
    recompute,
)
from services.cost_models import CostBreakdown

logger = logging.getLogger(__name__)

COST_KINDS = ('estimated', 'actual')


def cost_breakdown_for(job: Dict[str, Any], kind: str) -> Optional[CostBreakdown]:
    """
    Normalized breakdown of a job order dict

    The estimated side always resolves to a breakdown (empty when the job has
    never been costed). The actual side is None until one has been saved.
    """
    if kind not in COST_KINDS:
        raise ValueError(f"Unknown cost breakdown kind: {kind}")
    raw = job.get(f'{kind}_cost_breakdown')
    if kind == 'actual' and detect_format(raw) == FORMAT_ABSENT:
        return None
    return normalize_breakdown(raw)


class JobOrderRepository:
    """Repository for job order database operations."""

    EDITABLE_FIELDS = ['job_name', 'description', 'quantity', 'paper_type', 'size',
                       'finishing', 'notes', 'materials_used', 'inventory_consumed',
                       'invoice_id']

    def __init__(self, session: Session, organization_id: str):
        self.session = session
        self.organization_id = organization_id

    def _get(self, job_id: str) -> Optional[JobOrder]:
        return self.session.query(JobOrder).filter(
            JobOrder.id == job_id,
            JobOrder.organization_id == self.organization_id
        ).first()

    def _parse_date(self, value) -> Optional[date]:
        """Parse a date from string or return None."""
        if not value:
            return None
        if isinstance(value, date):
            return value
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00')).date()
        except (ValueError, AttributeError):
            return None

    def _store_breakdown(self, job: JobOrder, kind: str, value: Any) -> CostBreakdown:
        breakdown = recompute(normalize_breakdown(value))
        setattr(job, f'{kind}_cost_breakdown', breakdown.to_dict())
        if kind == 'estimated':
            job.estimated_cost = grand_total(breakdown)
        return breakdown

    # =========================================================================
    # JOB ORDERS
    # =========================================================================

    def list_jobs(self, status: str = None, customer_id: str = None) -> List[Dict]:
        """List job orders with optional filters, newest first."""
        query = self.session.query(JobOrder).filter(
            JobOrder.organization_id == self.organization_id
        )
        if status:
            query = query.filter(JobOrder.status == status)
        if customer_id:
            query = query.filter(JobOrder.customer_id == customer_id)
        jobs = query.order_by(JobOrder.created_at.desc()).all()
        return [j.to_dict() for j in jobs]

    def get_job(self, job_id: str) -> Optional[Dict]:
        """Get a job order by ID."""
        job = self._get(job_id)
        return job.to_dict() if job else None

    def create_job(self, data: Dict) -> Dict:
        """Create a new job order."""
        job = JobOrder(
            organization_id=self.organization_id,
            customer_id=data.get('customer_id') or None,
            job_name=data.get('job_name', ''),
            order_date=self._parse_date(data.get('order_date')) or date.today(),
            due_date=self._parse_date(data.get('due_date')),
            status=data.get('status', 'pending'),
            description=data.get('description'),
            quantity=data.get('quantity', 1),
            paper_type=data.get('paper_type'),
            size=data.get('size'),
            finishing=data.get('finishing'),
            price=data.get('price', 0),
            notes=data.get('notes'),
            materials_used=data.get('materials_used', []),
            inventory_consumed=data.get('inventory_consumed', False),
            invoice_id=data.get('invoice_id')
        )
        if data.get('estimated_cost_breakdown') is not None:
            self._store_breakdown(job, 'estimated', data['estimated_cost_breakdown'])
        if data.get('actual_cost_breakdown') is not None:
            self._store_breakdown(job, 'actual', data['actual_cost_breakdown'])

        self.session.add(job)
        self.session.flush()
        logger.info(f"Created job order: {job.id}")
        return job.to_dict()

    def update_job(self, job_id: str, data: Dict) -> Optional[Dict]:
        """Update a job order."""
        job = self._get(job_id)
        if not job:
            return None

        for key in self.EDITABLE_FIELDS:
            if key in data:
                setattr(job, key, data[key])

        if 'status' in data and data['status'] in JOB_STATUSES:
            job.status = data['status']
        if 'price' in data:
            job.price = data['price'] or 0
        if 'customer_id' in data:
            job.customer_id = data['customer_id'] or None
        if 'order_date' in data:
            job.order_date = self._parse_date(data['order_date'])
        if 'due_date' in data:
            job.due_date = self._parse_date(data['due_date'])

        job.updated_at = datetime.utcnow()
        self.session.flush()
        logger.info(f"Updated job order: {job_id}")
        return job.to_dict()

    def delete_job(self, job_id: str) -> bool:
        """Delete a job order together with its cost breakdowns."""
        job = self._get(job_id)
        if not job:
            return False
        self.session.delete(job)
        self.session.flush()
        logger.info(f"Deleted job order: {job_id}")
        return True

    # =========================================================================
    # COST BREAKDOWNS
    # =========================================================================

    def get_cost_breakdown(self, job_id: str, kind: str) -> Optional[CostBreakdown]:
        """Normalized breakdown of a stored job; None when the job or the actual side is missing."""
        job = self.get_job(job_id)
        if not job:
            return None
        return cost_breakdown_for(job, kind)

    def save_cost_breakdown(self, job_id: str, kind: str, breakdown: Any) -> Optional[Dict]:
        """
        Recompute and persist one side of a job's costing

        Args:
            job_id: Job order ID
            kind: 'estimated' or 'actual'
            breakdown: Breakdown of any vintage (dict or CostBreakdown)

        Returns:
            Updated job order dict, or None if the job does not exist
        """
        if kind not in COST_KINDS:
            raise ValueError(f"Unknown cost breakdown kind: {kind}")
        job = self._get(job_id)
        if not job:
            return None

        stored = self._store_breakdown(job, kind, breakdown)
        job.updated_at = datetime.utcnow()
        self.session.flush()
        logger.info(f"Saved {kind} cost breakdown for job {job_id}: total={grand_total(stored):.2f}")
        return job.to_dict()

    def copy_estimated_to_actual(self, job_id: str) -> Optional[Dict]:
        """Seed the actual breakdown from the estimate on explicit request."""
        job = self._get(job_id)
        if not job:
            return None

        actual = copy_estimated_to_actual(job.estimated_cost_breakdown)
        self._store_breakdown(job, 'actual', actual)
        job.updated_at = datetime.utcnow()
        self.session.flush()
        logger.info(f"Copied estimated costs to actual for job {job_id}")
        return job.to_dict()
