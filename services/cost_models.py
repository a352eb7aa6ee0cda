"""
Job Cost Data Model
Cost breakdown types shared by the costing engine, the repositories and the API.

Two stored shapes exist:
- Current: five structured standard categories, labor rows, an overhead line
  and other-expense rows.
- Legacy: five bare numbers plus {id, description, amount} expense rows.
  Read-only; always converted to the current shape on load.
"""

import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

STANDARD_CATEGORIES = ('paper', 'ctp', 'printing', 'binding', 'delivery')

CATEGORY_LABELS = {
    'paper': 'Paper',
    'ctp': 'CTP / Plate',
    'printing': 'Printing',
    'binding': 'Binding',
    'delivery': 'Delivery',
}


def coerce_number(value: Any) -> float:
    """
    Coerce raw form input into a finite float

    Args:
        value: Anything an upstream form may hand over

    Returns:
        The numeric value, or 0.0 for None, blanks, booleans, non-numeric
        strings, NaN, infinities and integers too large for a float
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def new_row_id() -> str:
    """Generate an id for a labor or other-expense row."""
    return str(uuid.uuid4())


def _first(data: Mapping, *keys, default=None):
    for key in keys:
        if key in data:
            return data[key]
    return default


def _as_mapping(value: Any) -> Mapping:
    return value if isinstance(value, Mapping) else {}


def _as_list(value: Any) -> list:
    return value if isinstance(value, (list, tuple)) else []


def _text(value: Any) -> str:
    return '' if value is None else str(value)


@dataclass
class LineItem:
    """Standard cost category line: total == quantity * rate."""
    quantity: float = 1.0
    rate: float = 0.0
    total: float = 0.0

    @classmethod
    def from_dict(cls, data: Any) -> 'LineItem':
        data = _as_mapping(data)
        return cls(
            quantity=coerce_number(data.get('quantity')),
            rate=coerce_number(data.get('rate')),
            total=coerce_number(data.get('total')),
        )

    def to_dict(self) -> Dict[str, float]:
        return {'quantity': self.quantity, 'rate': self.rate, 'total': self.total}


@dataclass
class LaborLineItem:
    """Labor row: total == hours * rate."""
    id: str
    description: str = ''
    hours: float = 0.0
    rate: float = 0.0
    total: float = 0.0

    @classmethod
    def from_dict(cls, data: Any) -> 'LaborLineItem':
        data = _as_mapping(data)
        return cls(
            id=_text(data.get('id')) or new_row_id(),
            description=_text(data.get('description')),
            hours=coerce_number(data.get('hours')),
            rate=coerce_number(data.get('rate')),
            total=coerce_number(data.get('total')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'description': self.description,
            'hours': self.hours,
            'rate': self.rate,
            'total': self.total,
        }


@dataclass
class OtherExpenseLineItem:
    """
    Other-expense row.

    When transaction_id is set, description and rate are a snapshot of the
    referenced expense record taken at selection time.
    """
    id: str
    description: str = ''
    quantity: float = 1.0
    rate: float = 0.0
    total: float = 0.0
    transaction_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> 'OtherExpenseLineItem':
        data = _as_mapping(data)
        transaction_id = _first(data, 'transaction_id', 'transactionId')
        return cls(
            id=_text(data.get('id')) or new_row_id(),
            description=_text(data.get('description')),
            quantity=coerce_number(data.get('quantity')),
            rate=coerce_number(data.get('rate')),
            total=coerce_number(data.get('total')),
            transaction_id=_text(transaction_id) or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'description': self.description,
            'quantity': self.quantity,
            'rate': self.rate,
            'total': self.total,
        }
        if self.transaction_id:
            data['transaction_id'] = self.transaction_id
        return data


@dataclass
class OverheadSpec:
    """
    Overhead line: total == base * percentage / 100.

    base is the subtotal the overhead was last computed against. The stored
    shape keeps the historical {quantity, rate, total} keys, where quantity
    holds the percentage and rate holds the base.
    """
    percentage: float = 0.0
    base: float = 0.0
    total: float = 0.0

    @classmethod
    def from_dict(cls, data: Any) -> 'OverheadSpec':
        data = _as_mapping(data)
        return cls(
            percentage=coerce_number(_first(data, 'percentage', 'quantity')),
            base=coerce_number(_first(data, 'base', 'rate')),
            total=coerce_number(data.get('total')),
        )

    def to_dict(self) -> Dict[str, float]:
        return {'quantity': self.percentage, 'rate': self.base, 'total': self.total}


@dataclass
class CostBreakdown:
    """Current-format cost breakdown owned by a single job order."""
    paper: LineItem = field(default_factory=LineItem)
    ctp: LineItem = field(default_factory=LineItem)
    printing: LineItem = field(default_factory=LineItem)
    binding: LineItem = field(default_factory=LineItem)
    delivery: LineItem = field(default_factory=LineItem)
    labor: List[LaborLineItem] = field(default_factory=list)
    overhead: OverheadSpec = field(default_factory=OverheadSpec)
    other_expenses: List[OtherExpenseLineItem] = field(default_factory=list)

    def standard_items(self) -> List[tuple]:
        """(category, LineItem) pairs in display order."""
        return [(name, getattr(self, name)) for name in STANDARD_CATEGORIES]

    def find_labor(self, row_id: str) -> Optional[LaborLineItem]:
        return next((row for row in self.labor if row.id == row_id), None)

    def find_other_expense(self, row_id: str) -> Optional[OtherExpenseLineItem]:
        return next((row for row in self.other_expenses if row.id == row_id), None)

    @classmethod
    def from_dict(cls, data: Any) -> 'CostBreakdown':
        data = _as_mapping(data)
        items = {name: LineItem.from_dict(data.get(name)) for name in STANDARD_CATEGORIES}
        return cls(
            labor=[LaborLineItem.from_dict(row) for row in _as_list(data.get('labor'))],
            overhead=OverheadSpec.from_dict(data.get('overhead')),
            other_expenses=[
                OtherExpenseLineItem.from_dict(row)
                for row in _as_list(_first(data, 'other_expenses', 'otherExpenses'))
            ],
            **items,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {name: item.to_dict() for name, item in self.standard_items()}
        data['labor'] = [row.to_dict() for row in self.labor]
        data['overhead'] = self.overhead.to_dict()
        data['other_expenses'] = [row.to_dict() for row in self.other_expenses]
        return data


@dataclass
class LegacyExpense:
    id: str
    description: str = ''
    amount: float = 0.0


@dataclass
class LegacyCostBreakdown:
    """Deprecated flat format: five scalars and {id, description, amount} rows."""
    paper: float = 0.0
    ctp: float = 0.0
    printing: float = 0.0
    binding: float = 0.0
    delivery: float = 0.0
    other_expenses: List[LegacyExpense] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> 'LegacyCostBreakdown':
        data = _as_mapping(data)
        expenses = []
        for row in _as_list(_first(data, 'other_expenses', 'otherExpenses')):
            row = _as_mapping(row)
            expenses.append(LegacyExpense(
                id=_text(row.get('id')) or new_row_id(),
                description=_text(row.get('description')),
                amount=coerce_number(row.get('amount')),
            ))
        scalars = {name: coerce_number(data.get(name)) for name in STANDARD_CATEGORIES}
        return cls(other_expenses=expenses, **scalars)
