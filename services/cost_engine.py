"""
Job Costing Engine
Normalizes stored cost breakdowns, applies edits and recomputes derived totals.

Every mutation goes through apply_edit(), which copies the breakdown, applies
a single edit and then recomputes every derived total. Nothing here performs
I/O; the Expense Registry is passed in by the caller.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Protocol, Union

from services.cost_models import (
    STANDARD_CATEGORIES,
    CostBreakdown,
    LaborLineItem,
    LegacyCostBreakdown,
    LineItem,
    OtherExpenseLineItem,
    OverheadSpec,
    coerce_number,
    new_row_id,
)

logger = logging.getLogger(__name__)

FORMAT_ABSENT = 'absent'
FORMAT_LEGACY = 'legacy'
FORMAT_CURRENT = 'current'


class InvalidCostEdit(ValueError):
    """Raised when an edit description names an unknown operation, category or field"""
    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class ExpenseRegistry(Protocol):
    def find(self, transaction_id: str) -> Optional[Dict[str, Any]]:
        ...


# ============================================================================
# FORMAT DETECTION & MIGRATION
# ============================================================================

def detect_format(value: Any) -> str:
    """
    Classify a stored breakdown of unknown vintage

    Args:
        value: Stored breakdown (dict, CostBreakdown, LegacyCostBreakdown or None)

    Returns:
        'current' when paper is a structured line, 'legacy' for any other
        mapping, 'absent' for None and non-mapping values
    """
    if isinstance(value, CostBreakdown):
        return FORMAT_CURRENT
    if isinstance(value, LegacyCostBreakdown):
        return FORMAT_LEGACY
    if not isinstance(value, Mapping):
        return FORMAT_ABSENT
    if isinstance(value.get('paper'), Mapping):
        return FORMAT_CURRENT
    return FORMAT_LEGACY


def empty_breakdown() -> CostBreakdown:
    """Fresh breakdown for a job order that has never been costed."""
    return CostBreakdown(
        **{name: LineItem(quantity=1.0, rate=0.0, total=0.0) for name in STANDARD_CATEGORIES},
        labor=[],
        overhead=OverheadSpec(),
        other_expenses=[],
    )


def migrate_legacy(legacy: LegacyCostBreakdown) -> CostBreakdown:
    """Convert the flat legacy format. Labor stays empty and overhead zero."""
    items = {
        name: LineItem(quantity=1.0, rate=getattr(legacy, name), total=getattr(legacy, name))
        for name in STANDARD_CATEGORIES
    }
    expenses = [
        OtherExpenseLineItem(
            id=row.id,
            description=row.description,
            quantity=1.0,
            rate=row.amount,
            total=row.amount,
        )
        for row in legacy.other_expenses
    ]
    return CostBreakdown(labor=[], overhead=OverheadSpec(), other_expenses=expenses, **items)


def normalize_breakdown(value: Any) -> CostBreakdown:
    """
    Bring any stored breakdown into the current shape

    Current input is deep-copied but otherwise passed through, so derived
    totals are not recomputed here.
    """
    kind = detect_format(value)
    if kind == FORMAT_ABSENT:
        return empty_breakdown()
    if kind == FORMAT_LEGACY:
        logger.debug("Migrating legacy cost breakdown")
        legacy = value if isinstance(value, LegacyCostBreakdown) else LegacyCostBreakdown.from_dict(value)
        return migrate_legacy(legacy)
    if isinstance(value, CostBreakdown):
        return copy.deepcopy(value)
    return CostBreakdown.from_dict(value)


# ============================================================================
# RECOMPUTATION
# ============================================================================

def subtotal(breakdown: CostBreakdown) -> float:
    """Sum of standard, labor and other-expense totals. Overhead is excluded."""
    standard = sum(item.total for _, item in breakdown.standard_items())
    labor = sum(row.total for row in breakdown.labor)
    other = sum(row.total for row in breakdown.other_expenses)
    return coerce_number(standard + labor + other)


def grand_total(breakdown: CostBreakdown) -> float:
    return coerce_number(subtotal(breakdown) + breakdown.overhead.total)


def recompute(breakdown: Any) -> CostBreakdown:
    """
    Re-derive every total of a breakdown

    Accepts any stored vintage. Returns a new breakdown; the argument is left
    untouched. Idempotent. A product or sum that overflows a float counts as 0.
    """
    result = normalize_breakdown(breakdown)

    for _, item in result.standard_items():
        item.quantity = coerce_number(item.quantity)
        item.rate = coerce_number(item.rate)
        item.total = coerce_number(item.quantity * item.rate)

    for row in result.labor:
        row.hours = coerce_number(row.hours)
        row.rate = coerce_number(row.rate)
        row.total = coerce_number(row.hours * row.rate)

    for row in result.other_expenses:
        row.quantity = coerce_number(row.quantity)
        row.rate = coerce_number(row.rate)
        row.total = coerce_number(row.quantity * row.rate)

    base = subtotal(result)
    overhead = result.overhead
    overhead.percentage = coerce_number(overhead.percentage)
    overhead.base = base
    overhead.total = coerce_number(base * (overhead.percentage / 100))
    return result


# ============================================================================
# EDITS
# ============================================================================

@dataclass(frozen=True)
class SetStandardField:
    category: str
    field: str
    value: Any


@dataclass(frozen=True)
class AddLaborRow:
    description: str = ''
    hours: Any = 0
    rate: Any = 0


@dataclass(frozen=True)
class UpdateLaborRow:
    row_id: str
    field: str
    value: Any


@dataclass(frozen=True)
class RemoveLaborRow:
    row_id: str


@dataclass(frozen=True)
class AddOtherExpense:
    description: str = ''
    quantity: Any = 1
    rate: Any = 0


@dataclass(frozen=True)
class UpdateOtherExpense:
    row_id: str
    field: str
    value: Any


@dataclass(frozen=True)
class RemoveOtherExpense:
    row_id: str


@dataclass(frozen=True)
class SelectExpenseTransaction:
    row_id: str
    transaction_id: str


@dataclass(frozen=True)
class SetOverheadPercentage:
    percentage: Any


CostEdit = Union[
    SetStandardField, AddLaborRow, UpdateLaborRow, RemoveLaborRow,
    AddOtherExpense, UpdateOtherExpense, RemoveOtherExpense,
    SelectExpenseTransaction, SetOverheadPercentage,
]

STANDARD_FIELDS = ('quantity', 'rate')
LABOR_FIELDS = ('description', 'hours', 'rate')
OTHER_EXPENSE_FIELDS = ('description', 'quantity', 'rate')


def _set_row_field(row, field: str, value: Any):
    if field == 'description':
        row.description = '' if value is None else str(value)
    else:
        setattr(row, field, coerce_number(value))


def _select_transaction(breakdown: CostBreakdown, edit: SelectExpenseTransaction,
                        expenses: Optional[ExpenseRegistry]):
    row = breakdown.find_other_expense(edit.row_id)
    if row is None:
        return
    expense = expenses.find(edit.transaction_id) if expenses is not None else None
    if not expense:
        logger.debug(f"Expense transaction {edit.transaction_id} not found, row {edit.row_id} left unchanged")
        return
    row.description = str(expense.get('description') or '')
    row.quantity = 1.0
    row.rate = coerce_number(expense.get('amount'))
    row.transaction_id = str(expense.get('id') or edit.transaction_id)


def _mutate(breakdown: CostBreakdown, edit: CostEdit, expenses: Optional[ExpenseRegistry]):
    if isinstance(edit, SetStandardField):
        item = getattr(breakdown, edit.category)
        setattr(item, edit.field, coerce_number(edit.value))

    elif isinstance(edit, AddLaborRow):
        breakdown.labor.append(LaborLineItem(
            id=new_row_id(),
            description=edit.description or '',
            hours=coerce_number(edit.hours),
            rate=coerce_number(edit.rate),
        ))

    elif isinstance(edit, UpdateLaborRow):
        row = breakdown.find_labor(edit.row_id)
        if row is not None:
            _set_row_field(row, edit.field, edit.value)

    elif isinstance(edit, RemoveLaborRow):
        breakdown.labor = [row for row in breakdown.labor if row.id != edit.row_id]

    elif isinstance(edit, AddOtherExpense):
        breakdown.other_expenses.append(OtherExpenseLineItem(
            id=new_row_id(),
            description=edit.description or '',
            quantity=coerce_number(edit.quantity),
            rate=coerce_number(edit.rate),
        ))

    elif isinstance(edit, UpdateOtherExpense):
        row = breakdown.find_other_expense(edit.row_id)
        if row is not None:
            _set_row_field(row, edit.field, edit.value)

    elif isinstance(edit, RemoveOtherExpense):
        breakdown.other_expenses = [row for row in breakdown.other_expenses if row.id != edit.row_id]

    elif isinstance(edit, SelectExpenseTransaction):
        _select_transaction(breakdown, edit, expenses)

    elif isinstance(edit, SetOverheadPercentage):
        breakdown.overhead.percentage = coerce_number(edit.percentage)


def apply_edit(breakdown: Any, edit: CostEdit,
               expenses: Optional[ExpenseRegistry] = None) -> CostBreakdown:
    """
    Apply one edit and recompute

    Args:
        breakdown: Current breakdown (any stored vintage is normalized first)
        edit: One of the CostEdit dataclasses
        expenses: Expense Registry used to resolve SelectExpenseTransaction

    Returns:
        New, fully recomputed breakdown
    """
    working = normalize_breakdown(breakdown)
    _mutate(working, edit, expenses)
    return recompute(working)


def apply_edits(breakdown: Any, edits: Iterable[CostEdit],
                expenses: Optional[ExpenseRegistry] = None) -> CostBreakdown:
    """Fold a sequence of edits. The result is recomputed even for no edits."""
    result = recompute(normalize_breakdown(breakdown))
    for edit in edits:
        result = apply_edit(result, edit, expenses)
    return result


def _require(payload: Mapping, key: str) -> Any:
    if key not in payload or payload[key] in (None, ''):
        raise InvalidCostEdit(f"Missing required field: {key}", key)
    return payload[key]


def _check_choice(value: Any, choices: tuple, field: str) -> str:
    if value not in choices:
        raise InvalidCostEdit(f"Invalid {field} '{value}'. Allowed: {', '.join(choices)}", field)
    return value


def edit_from_dict(payload: Mapping) -> CostEdit:
    """
    Parse a JSON edit description

    Example:
        {"op": "set_standard", "category": "paper", "field": "rate", "value": 12}

    Raises:
        InvalidCostEdit: Unknown op, category or field, or missing row id
    """
    if not isinstance(payload, Mapping):
        raise InvalidCostEdit("Edit must be an object", 'op')

    op = payload.get('op')
    if op == 'set_standard':
        return SetStandardField(
            category=_check_choice(payload.get('category'), STANDARD_CATEGORIES, 'category'),
            field=_check_choice(payload.get('field'), STANDARD_FIELDS, 'field'),
            value=payload.get('value'),
        )
    if op == 'add_labor':
        return AddLaborRow(
            description=str(payload.get('description') or ''),
            hours=payload.get('hours', 0),
            rate=payload.get('rate', 0),
        )
    if op == 'update_labor':
        return UpdateLaborRow(
            row_id=str(_require(payload, 'row_id')),
            field=_check_choice(payload.get('field'), LABOR_FIELDS, 'field'),
            value=payload.get('value'),
        )
    if op == 'remove_labor':
        return RemoveLaborRow(row_id=str(_require(payload, 'row_id')))
    if op == 'add_other_expense':
        return AddOtherExpense(
            description=str(payload.get('description') or ''),
            quantity=payload.get('quantity', 1),
            rate=payload.get('rate', 0),
        )
    if op == 'update_other_expense':
        return UpdateOtherExpense(
            row_id=str(_require(payload, 'row_id')),
            field=_check_choice(payload.get('field'), OTHER_EXPENSE_FIELDS, 'field'),
            value=payload.get('value'),
        )
    if op == 'remove_other_expense':
        return RemoveOtherExpense(row_id=str(_require(payload, 'row_id')))
    if op == 'select_expense':
        return SelectExpenseTransaction(
            row_id=str(_require(payload, 'row_id')),
            transaction_id=str(_require(payload, 'transaction_id')),
        )
    if op == 'set_overhead':
        return SetOverheadPercentage(percentage=payload.get('percentage'))

    raise InvalidCostEdit(f"Unknown edit operation: {op}", 'op')


# ============================================================================
# COPY ACTION
# ============================================================================

def copy_estimated_to_actual(estimated: Any) -> CostBreakdown:
    """
    Seed an actual breakdown from the estimate

    The copy shares no mutable state with the estimate.
    """
    return copy.deepcopy(normalize_breakdown(estimated))
