"""
Tests for the job costing engine
"""
import pytest

from services.cost_engine import (
    FORMAT_ABSENT,
    FORMAT_CURRENT,
    FORMAT_LEGACY,
    AddLaborRow,
    AddOtherExpense,
    InvalidCostEdit,
    RemoveLaborRow,
    RemoveOtherExpense,
    SelectExpenseTransaction,
    SetOverheadPercentage,
    SetStandardField,
    UpdateLaborRow,
    UpdateOtherExpense,
    apply_edit,
    apply_edits,
    copy_estimated_to_actual,
    detect_format,
    edit_from_dict,
    empty_breakdown,
    grand_total,
    normalize_breakdown,
    recompute,
    subtotal,
)
from services.cost_models import STANDARD_CATEGORIES, CostBreakdown


class FakeExpenses:
    """In-memory expense registry"""

    def __init__(self, records):
        self.records = records
        self.lookups = []

    def find(self, transaction_id):
        self.lookups.append(transaction_id)
        return self.records.get(transaction_id)


def assert_consistent(breakdown):
    """Every derived total matches its inputs"""
    for _, item in breakdown.standard_items():
        assert item.total == pytest.approx(item.quantity * item.rate)
    for row in breakdown.labor:
        assert row.total == pytest.approx(row.hours * row.rate)
    for row in breakdown.other_expenses:
        assert row.total == pytest.approx(row.quantity * row.rate)
    base = subtotal(breakdown)
    assert breakdown.overhead.base == pytest.approx(base)
    assert breakdown.overhead.total == pytest.approx(base * breakdown.overhead.percentage / 100)


@pytest.mark.unit
class TestDetectFormat:
    """Tests for stored breakdown classification"""

    def test_absent(self):
        """Test None and non-mappings are absent"""
        assert detect_format(None) == FORMAT_ABSENT
        assert detect_format('paper') == FORMAT_ABSENT
        assert detect_format([1, 2]) == FORMAT_ABSENT

    def test_legacy(self, legacy_breakdown):
        """Test scalar paper means legacy"""
        assert detect_format(legacy_breakdown) == FORMAT_LEGACY
        assert detect_format({}) == FORMAT_LEGACY

    def test_current(self, current_breakdown):
        """Test a structured paper line means current"""
        assert detect_format(current_breakdown) == FORMAT_CURRENT
        assert detect_format(empty_breakdown()) == FORMAT_CURRENT


@pytest.mark.unit
class TestNormalize:
    """Tests for migration to the current shape"""

    def test_absent_gives_empty_breakdown(self):
        """Test an uncosted job starts from quantity 1, rate 0"""
        breakdown = normalize_breakdown(None)
        for name in STANDARD_CATEGORIES:
            item = getattr(breakdown, name)
            assert (item.quantity, item.rate, item.total) == (1, 0, 0)
        assert breakdown.labor == []
        assert breakdown.other_expenses == []
        assert breakdown.overhead.percentage == 0

    def test_legacy_migration(self, legacy_breakdown):
        """Test legacy scalars become quantity 1 lines"""
        breakdown = normalize_breakdown(legacy_breakdown)
        assert breakdown.paper.quantity == 1
        assert breakdown.paper.rate == 100
        assert breakdown.paper.total == 100
        assert breakdown.labor == []
        assert breakdown.overhead.total == 0
        row = breakdown.other_expenses[0]
        assert (row.id, row.description, row.quantity, row.rate, row.total) == \
            ('exp-1', 'Courier', 1, 15, 15)
        assert row.transaction_id is None

    def test_legacy_total_is_preserved(self, legacy_breakdown):
        """Test the migrated breakdown totals 415 like the legacy one"""
        assert grand_total(recompute(normalize_breakdown(legacy_breakdown))) == pytest.approx(415)

    def test_current_passes_through_without_recompute(self):
        """Test stored totals are left as they are on load"""
        stored = {'paper': {'quantity': 2, 'rate': 5, 'total': 999}}
        assert normalize_breakdown(stored).paper.total == 999

    def test_input_is_not_mutated(self, current_breakdown):
        """Test normalizing an object returns a copy"""
        original = CostBreakdown.from_dict(current_breakdown)
        normalized = normalize_breakdown(original)
        normalized.paper.rate = 1
        assert original.paper.rate == 50


@pytest.mark.unit
class TestRecompute:
    """Tests for derived totals"""

    def test_overhead_example(self, current_breakdown):
        """Test 1000 standard + 200 labor + 50 other at 10% overhead"""
        breakdown = recompute(normalize_breakdown(current_breakdown))
        assert subtotal(breakdown) == pytest.approx(1250)
        assert breakdown.overhead.base == pytest.approx(1250)
        assert breakdown.overhead.total == pytest.approx(125)
        assert grand_total(breakdown) == pytest.approx(1375)

    def test_stale_totals_are_repaired(self):
        """Test every line is recomputed, not only edited ones"""
        breakdown = recompute(normalize_breakdown({
            'paper': {'quantity': 3, 'rate': 4, 'total': 0},
            'labor': [{'id': 'l', 'hours': 2, 'rate': 10, 'total': 1}],
            'overhead': {'quantity': 50, 'rate': 0, 'total': 0},
        }))
        assert breakdown.paper.total == 12
        assert breakdown.labor[0].total == 20
        assert breakdown.overhead.total == pytest.approx(16)
        assert_consistent(breakdown)

    def test_idempotent(self, current_breakdown, legacy_breakdown):
        """Test recomputing twice changes nothing"""
        for value in (current_breakdown, legacy_breakdown, None):
            once = recompute(normalize_breakdown(value))
            assert recompute(once) == once

    def test_nan_inputs_become_zero(self):
        """Test NaN quantities never reach a total"""
        breakdown = normalize_breakdown(None)
        breakdown.paper.quantity = float('nan')
        breakdown.paper.rate = 5
        result = recompute(breakdown)
        assert result.paper.quantity == 0
        assert result.paper.total == 0

    def test_overflowing_products_become_zero(self):
        """Test finite inputs whose product overflows never store inf or NaN"""
        breakdown = apply_edit(None, SetStandardField(category='paper', field='quantity', value=1e200))
        breakdown = apply_edit(breakdown, SetStandardField(category='paper', field='rate', value=1e200))
        assert breakdown.paper.total == 0
        assert breakdown.overhead.base == 0
        assert breakdown.overhead.total == 0
        assert grand_total(breakdown) == 0

    def test_overflowing_sum_becomes_zero(self):
        """Test a subtotal past the float range is stored as 0"""
        breakdown = recompute({
            'paper': {'quantity': 1, 'rate': 1.5e308},
            'ctp': {'quantity': 1, 'rate': 1.5e308},
            'overhead': {'quantity': 10},
        })
        assert breakdown.paper.total == 1.5e308
        assert subtotal(breakdown) == 0
        assert breakdown.overhead.total == 0
        assert grand_total(breakdown) == 0

    def test_huge_integer_input(self):
        """Test an integer too large for a float is treated as 0"""
        breakdown = recompute({'paper': {'quantity': 10 ** 400, 'rate': 3}})
        assert breakdown.paper.quantity == 0
        assert breakdown.paper.total == 0

    def test_accepts_stored_dicts(self, current_breakdown, legacy_breakdown):
        """Test stored breakdowns of any vintage can be recomputed directly"""
        assert grand_total(recompute(current_breakdown)) == pytest.approx(1375)
        assert grand_total(recompute(legacy_breakdown)) == pytest.approx(415)
        assert recompute(None) == recompute(empty_breakdown())

    def test_does_not_mutate_argument(self, current_breakdown):
        """Test recompute returns a new breakdown"""
        breakdown = normalize_breakdown(current_breakdown)
        breakdown.paper.total = 1
        recompute(breakdown)
        assert breakdown.paper.total == 1

    def test_negative_values_allowed(self):
        """Test credits reduce the subtotal"""
        breakdown = apply_edit(None, AddOtherExpense(description='Supplier credit', quantity=1, rate=-30))
        assert subtotal(breakdown) == -30


@pytest.mark.unit
class TestApplyEdit:
    """Tests for the edit reducer"""

    def test_set_standard_field(self):
        """Test a standard rate edit updates the line and overhead"""
        breakdown = apply_edits(None, [
            SetOverheadPercentage(10),
            SetStandardField('paper', 'quantity', 10),
            SetStandardField('paper', 'rate', '12.5'),
        ])
        assert breakdown.paper.total == 125
        assert breakdown.overhead.total == pytest.approx(12.5)
        assert_consistent(breakdown)

    def test_labor_lifecycle(self):
        """Test add, update and remove of a labor row"""
        breakdown = apply_edit(None, AddLaborRow(description='Folding', hours=3, rate=20))
        row_id = breakdown.labor[0].id
        assert breakdown.labor[0].total == 60

        breakdown = apply_edit(breakdown, UpdateLaborRow(row_id, 'hours', 5))
        assert breakdown.labor[0].total == 100
        breakdown = apply_edit(breakdown, UpdateLaborRow(row_id, 'description', 'Folding & trimming'))
        assert breakdown.labor[0].description == 'Folding & trimming'

        breakdown = apply_edit(breakdown, RemoveLaborRow(row_id))
        assert breakdown.labor == []
        assert subtotal(breakdown) == 0

    def test_other_expense_lifecycle(self):
        """Test add, update and remove of an other-expense row"""
        breakdown = apply_edit(None, AddOtherExpense(description='Shrink wrap'))
        row_id = breakdown.other_expenses[0].id
        assert breakdown.other_expenses[0].quantity == 1

        breakdown = apply_edit(breakdown, UpdateOtherExpense(row_id, 'rate', 8))
        breakdown = apply_edit(breakdown, UpdateOtherExpense(row_id, 'quantity', 3))
        assert breakdown.other_expenses[0].total == 24

        breakdown = apply_edit(breakdown, RemoveOtherExpense(row_id))
        assert breakdown.other_expenses == []

    def test_unknown_row_is_noop(self, current_breakdown):
        """Test edits addressing a missing row change nothing"""
        before = recompute(normalize_breakdown(current_breakdown))
        after = apply_edits(before, [
            UpdateLaborRow('missing', 'hours', 99),
            RemoveLaborRow('missing'),
            UpdateOtherExpense('missing', 'rate', 99),
            RemoveOtherExpense('missing'),
        ])
        assert after == before

    def test_input_breakdown_untouched(self, current_breakdown):
        """Test apply_edit leaves its input alone"""
        before = normalize_breakdown(current_breakdown)
        apply_edit(before, SetStandardField('paper', 'rate', 0))
        assert before.paper.rate == 50

    def test_every_edit_keeps_totals_consistent(self, legacy_breakdown):
        """Test invariants hold after each edit of a sequence"""
        breakdown = normalize_breakdown(legacy_breakdown)
        edits = [
            SetStandardField('printing', 'quantity', 2),
            AddLaborRow(description='Setup', hours=1.5, rate=40),
            SetOverheadPercentage(12),
            AddOtherExpense(description='Pallet', quantity=2, rate=7),
            UpdateOtherExpense('exp-1', 'rate', 'oops'),
        ]
        for edit in edits:
            breakdown = apply_edit(breakdown, edit)
            assert_consistent(breakdown)
        assert breakdown.find_other_expense('exp-1').total == 0


@pytest.mark.unit
class TestSelectExpenseTransaction:
    """Tests for linking a cost line to a recorded expense"""

    def test_snapshot_of_expense(self):
        """Test the row copies description and amount at selection time"""
        expenses = FakeExpenses({'tx-1': {'id': 'tx-1', 'description': 'Ink order', 'amount': 80}})
        breakdown = apply_edit(None, AddOtherExpense(description='placeholder', quantity=4, rate=1))
        row_id = breakdown.other_expenses[0].id

        breakdown = apply_edit(breakdown, SelectExpenseTransaction(row_id, 'tx-1'), expenses)
        row = breakdown.other_expenses[0]
        assert (row.description, row.quantity, row.rate, row.total, row.transaction_id) == \
            ('Ink order', 1, 80, 80, 'tx-1')

        # Later changes to the record do not flow into the row
        expenses.records['tx-1']['amount'] = 500
        breakdown = recompute(breakdown)
        assert breakdown.other_expenses[0].total == 80

    def test_unknown_transaction_is_noop(self):
        """Test a missing transaction leaves the row unchanged"""
        breakdown = apply_edit(None, AddOtherExpense(description='Manual', quantity=2, rate=3))
        row_id = breakdown.other_expenses[0].id
        after = apply_edit(breakdown, SelectExpenseTransaction(row_id, 'nope'), FakeExpenses({}))
        assert after == breakdown

    def test_without_registry_is_noop(self):
        """Test no registry means nothing can be resolved"""
        breakdown = apply_edit(None, AddOtherExpense(description='Manual', quantity=2, rate=3))
        row_id = breakdown.other_expenses[0].id
        assert apply_edit(breakdown, SelectExpenseTransaction(row_id, 'tx-1')) == breakdown


@pytest.mark.unit
class TestEditFromDict:
    """Tests for parsing JSON edit descriptions"""

    def test_parses_each_operation(self):
        """Test every op maps to its edit type"""
        assert edit_from_dict({'op': 'set_standard', 'category': 'ctp', 'field': 'rate', 'value': 3}) == \
            SetStandardField('ctp', 'rate', 3)
        assert isinstance(edit_from_dict({'op': 'add_labor', 'hours': 2}), AddLaborRow)
        assert edit_from_dict({'op': 'update_labor', 'row_id': 'a', 'field': 'rate', 'value': 1}) == \
            UpdateLaborRow('a', 'rate', 1)
        assert edit_from_dict({'op': 'remove_labor', 'row_id': 'a'}) == RemoveLaborRow('a')
        assert isinstance(edit_from_dict({'op': 'add_other_expense'}), AddOtherExpense)
        assert edit_from_dict({'op': 'remove_other_expense', 'row_id': 'b'}) == RemoveOtherExpense('b')
        assert edit_from_dict({'op': 'select_expense', 'row_id': 'b', 'transaction_id': 't'}) == \
            SelectExpenseTransaction('b', 't')
        assert edit_from_dict({'op': 'set_overhead', 'percentage': 15}) == SetOverheadPercentage(15)

    @pytest.mark.parametrize('payload,field', [
        ({'op': 'explode'}, 'op'),
        ({'op': 'set_standard', 'category': 'labor', 'field': 'rate', 'value': 1}, 'category'),
        ({'op': 'set_standard', 'category': 'paper', 'field': 'total', 'value': 1}, 'field'),
        ({'op': 'update_labor', 'field': 'hours', 'value': 1}, 'row_id'),
        ({'op': 'update_other_expense', 'row_id': 'x', 'field': 'hours', 'value': 1}, 'field'),
        ({'op': 'select_expense', 'row_id': 'x'}, 'transaction_id'),
        ('not an object', 'op'),
    ])
    def test_invalid_payloads(self, payload, field):
        """Test malformed edits raise with the offending field"""
        with pytest.raises(InvalidCostEdit) as exc_info:
            edit_from_dict(payload)
        assert exc_info.value.field == field

    def test_non_numeric_value_is_not_a_parse_error(self):
        """Test bad numbers are left for the engine to coerce"""
        edit = edit_from_dict({'op': 'set_standard', 'category': 'paper', 'field': 'rate', 'value': 'abc'})
        assert apply_edit(None, edit).paper.rate == 0


@pytest.mark.unit
class TestCopyEstimatedToActual:
    """Tests for the copy action"""

    def test_copy_equals_estimate(self, current_breakdown):
        """Test the copy carries every line"""
        estimated = recompute(normalize_breakdown(current_breakdown))
        assert copy_estimated_to_actual(estimated) == estimated

    def test_copy_is_independent(self, current_breakdown):
        """Test editing the copy never changes the estimate"""
        estimated = recompute(normalize_breakdown(current_breakdown))
        actual = copy_estimated_to_actual(estimated)
        actual.labor[0].hours = 99
        actual.other_expenses.clear()
        actual.paper.rate = 0
        assert estimated.labor[0].hours == 8
        assert len(estimated.other_expenses) == 1
        assert estimated.paper.rate == 50

    def test_copy_from_legacy(self, legacy_breakdown):
        """Test a legacy estimate is migrated before copying"""
        actual = copy_estimated_to_actual(legacy_breakdown)
        assert actual.printing.rate == 200
        assert actual.other_expenses[0].total == 15
