from galaltix.core.modules.invoice.models import InvoiceDraft, InvoiceType
from galaltix.errors import ValidationError


def validate_draft(draft: InvoiceDraft) -> None:
    """Check business rules that span several invoice fields.

    Raises:
        ValidationError: If the draft cannot become an invoice
    """
    if draft.type == InvoiceType.SALES and not draft.buyer_name.strip():
        raise ValidationError("Sales invoice requires a buyer")
    if draft.type == InvoiceType.PURCHASE and not draft.supplier_name.strip():
        raise ValidationError("Purchase bill requires a supplier")
    if draft.due_date < draft.invoice_date:
        raise ValidationError("Due date cannot be before invoice date")
    subtotal = sum(item.quantity * item.unit_price for item in draft.items)
    if draft.discount > subtotal:
        raise ValidationError("Discount cannot exceed the invoice subtotal")
