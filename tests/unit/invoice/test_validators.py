"""Tests for invoice draft validation."""

from datetime import date

import pytest

from galaltix.core.modules.invoice.models import InvoiceDraft, InvoiceItem, InvoiceType
from galaltix.core.modules.invoice.validators import validate_draft
from galaltix.errors import ValidationError


def make_draft(**overrides):
    data = {
        "type": InvoiceType.SALES,
        "buyer_name": "Oando Marketing",
        "invoice_date": date(2026, 2, 3),
        "due_date": date(2026, 3, 5),
        "items": [InvoiceItem(description="AGO", quantity=500, unit_price=812.5)],
    }
    data.update(overrides)
    return InvoiceDraft(**data)


class TestValidateDraft:
    """Tests for validate_draft function."""

    def test_valid_sales_draft(self):
        validate_draft(make_draft())

    def test_sales_invoice_requires_buyer(self):
        with pytest.raises(ValidationError, match="buyer"):
            validate_draft(make_draft(buyer_name="  "))

    def test_purchase_bill_requires_supplier(self):
        with pytest.raises(ValidationError, match="supplier"):
            validate_draft(make_draft(type=InvoiceType.PURCHASE, buyer_name=""))

    def test_due_date_before_invoice_date(self):
        with pytest.raises(ValidationError, match="Due date"):
            validate_draft(make_draft(due_date=date(2026, 2, 1)))

    def test_discount_larger_than_subtotal(self):
        with pytest.raises(ValidationError, match="Discount"):
            validate_draft(make_draft(discount=1_000_000))
