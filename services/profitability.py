"""
Job Profitability Calculator
Total cost, profit, margin and estimate-vs-actual variance for job orders.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping

from services.cost_engine import (
    FORMAT_ABSENT,
    FORMAT_LEGACY,
    detect_format,
    normalize_breakdown,
)
from services.cost_models import STANDARD_CATEGORIES, CostBreakdown, LegacyCostBreakdown, coerce_number

logger = logging.getLogger(__name__)

UNDER_BUDGET = 'under budget'
OVER_BUDGET = 'over budget'
ON_BUDGET = 'on budget'


@dataclass
class ProfitSummary:
    total_cost: float
    profit: float
    margin_percent: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class CostVariance:
    """amount = estimated - actual; positive means the job came in under budget."""
    amount: float
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def total_cost(value: Any) -> float:
    """
    Total cost of a stored breakdown

    Current format: standard + labor + other expenses + overhead, using the
    totals as stored. Legacy format: the five scalars plus expense amounts.
    Absent: 0.
    """
    kind = detect_format(value)
    if kind == FORMAT_ABSENT:
        return 0.0
    if kind == FORMAT_LEGACY:
        legacy = value if isinstance(value, LegacyCostBreakdown) else LegacyCostBreakdown.from_dict(value)
        return coerce_number(
            sum(getattr(legacy, name) for name in STANDARD_CATEGORIES)
            + sum(row.amount for row in legacy.other_expenses)
        )

    breakdown = value if isinstance(value, CostBreakdown) else normalize_breakdown(value)
    standard = sum(item.total for _, item in breakdown.standard_items())
    labor = sum(row.total for row in breakdown.labor)
    other = sum(row.total for row in breakdown.other_expenses)
    return coerce_number(standard + labor + other + breakdown.overhead.total)


def margin_percent(price: float, profit: float) -> float:
    """Profit as a percentage of price; 0 when there is no positive price."""
    if price > 0:
        return coerce_number((profit / price) * 100)
    return 0.0


def summarize_profitability(value: Any, price: Any) -> ProfitSummary:
    cost = total_cost(value)
    price = coerce_number(price)
    profit = coerce_number(price - cost)
    return ProfitSummary(total_cost=cost, profit=profit, margin_percent=margin_percent(price, profit))


def variance_label(amount: float) -> str:
    if amount > 0:
        return UNDER_BUDGET
    if amount < 0:
        return OVER_BUDGET
    return ON_BUDGET


def compute_variance(estimated_total: Any, actual_total: Any) -> CostVariance:
    amount = coerce_number(coerce_number(estimated_total) - coerce_number(actual_total))
    return CostVariance(amount=amount, label=variance_label(amount))


def job_cost_summary(job: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Cost and profitability figures for a job order dict

    Actual figures stay None until the job has an actual breakdown; they are
    never filled in from the estimate.

    Args:
        job: Job order dict with price, estimated_cost_breakdown and
             actual_cost_breakdown

    Returns:
        Dict with estimated, actual and variance sections
    """
    price = coerce_number(job.get('price'))
    estimated_raw = job.get('estimated_cost_breakdown')
    actual_raw = job.get('actual_cost_breakdown')

    estimated = summarize_profitability(estimated_raw, price)
    summary = {
        'price': price,
        'estimated_format': detect_format(estimated_raw),
        'estimated': estimated.to_dict(),
        'actual': None,
        'variance': None,
    }

    if detect_format(actual_raw) == FORMAT_ABSENT:
        logger.debug(f"Job {job.get('id')} has no actual cost breakdown yet")
        return summary

    actual = summarize_profitability(actual_raw, price)
    summary['actual'] = actual.to_dict()
    summary['variance'] = compute_variance(estimated.total_cost, actual.total_cost).to_dict()
    return summary
