"""Invoice line and total calculation."""

from pydantic import BaseModel

from galaltix.core.modules.invoice.models import InvoiceItem
from galaltix.utils import round_money


class InvoiceTotals(BaseModel):
    items: list[InvoiceItem]
    subtotal: float
    tax_amount: float
    total_amount: float
    balance_due: float


def calculate_totals(items: list[InvoiceItem], tax_rate: float, discount: float, amount_paid: float) -> InvoiceTotals:
    """Compute line amounts and totals, rounded to cents.

    total = subtotal + tax - discount, balance = total - paid (never below zero).
    """
    priced = [item.model_copy(update={"amount": round_money(item.quantity * item.unit_price)}) for item in items]
    subtotal = round_money(sum(item.amount for item in priced))
    tax_amount = round_money(subtotal * tax_rate / 100)
    total_amount = round_money(subtotal + tax_amount - discount)
    balance_due = round_money(max(0.0, total_amount - amount_paid))
    return InvoiceTotals(
        items=priced,
        subtotal=subtotal,
        tax_amount=tax_amount,
        total_amount=total_amount,
        balance_due=balance_due,
    )
