"""Tests for invoice total calculation."""

from galaltix.core.modules.invoice.models import InvoiceItem
from galaltix.core.modules.invoice.totals import calculate_totals


class TestCalculateTotals:
    """Tests for calculate_totals function."""

    def test_line_amounts_and_subtotal(self):
        items = [
            InvoiceItem(description="PMS", quantity=250, unit_price=640.4),
            InvoiceItem(description="Demurrage", quantity=2, unit_price=1500),
        ]
        totals = calculate_totals(items, tax_rate=0, discount=0, amount_paid=0)

        assert [item.amount for item in totals.items] == [160100.0, 3000.0]
        assert totals.subtotal == 163100.0
        assert totals.total_amount == 163100.0
        assert totals.balance_due == 163100.0

    def test_tax_and_discount(self):
        items = [InvoiceItem(description="AGO", quantity=10, unit_price=100)]
        totals = calculate_totals(items, tax_rate=7.5, discount=50, amount_paid=0)

        assert totals.tax_amount == 75.0
        assert totals.total_amount == 1025.0

    def test_amount_paid_reduces_balance(self):
        items = [InvoiceItem(description="AGO", quantity=10, unit_price=100)]
        totals = calculate_totals(items, tax_rate=0, discount=0, amount_paid=400)

        assert totals.balance_due == 600.0

    def test_overpayment_floors_balance_at_zero(self):
        items = [InvoiceItem(description="AGO", quantity=1, unit_price=100)]
        totals = calculate_totals(items, tax_rate=0, discount=0, amount_paid=150)

        assert totals.balance_due == 0.0

    def test_rounds_to_cents(self):
        items = [InvoiceItem(description="LPG", quantity=3, unit_price=0.333)]
        totals = calculate_totals(items, tax_rate=10, discount=0, amount_paid=0)

        assert totals.subtotal == 1.0
        assert totals.tax_amount == 0.1
        assert totals.total_amount == 1.1

    def test_input_items_are_not_modified(self):
        items = [InvoiceItem(description="AGO", quantity=2, unit_price=10)]
        calculate_totals(items, tax_rate=0, discount=0, amount_paid=0)

        assert items[0].amount == 0
