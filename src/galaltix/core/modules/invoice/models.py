from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_serializer

from galaltix.core.db import MongoModel
from galaltix.utils import now


class InvoiceType(StrEnum):
    SALES = "SALES"
    PURCHASE = "PURCHASE"


class InvoiceStatus(StrEnum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class InvoiceItem(BaseModel):
    """Invoice line."""

    description: str = Field(..., min_length=1, description="Line description, e.g. 'AGO 500 MT'")
    quantity: float = Field(..., gt=0, description="Quantity in the contract unit")
    unit_price: float = Field(..., ge=0, description="Price per unit")
    amount: float = Field(default=0, description="quantity * unit_price, computed on create")


class InvoiceDraft(BaseModel):
    """Invoice data supplied by the caller; number and totals are assigned on create."""

    type: InvoiceType = Field(default=InvoiceType.SALES, description="Sales invoice or purchase bill")
    buyer_name: str = Field(default="", description="Buyer, required for sales invoices")
    buyer_email: str = Field(default="", description="Buyer contact email")
    buyer_address: str = Field(default="", description="Buyer billing address")
    supplier_name: str = Field(default="", description="Supplier, required for purchase bills")
    sales_contract_number: str = Field(default="", description="Linked sales contract")
    purchase_contract_number: str = Field(default="", description="Linked purchase contract")
    invoice_date: date = Field(..., description="Issue date")
    due_date: date = Field(..., description="Payment due date")
    items: list[InvoiceItem] = Field(..., min_length=1, description="Invoice lines")
    tax_rate: float = Field(default=0, ge=0, le=100, description="Tax rate in percent")
    discount: float = Field(default=0, ge=0, description="Absolute discount")
    amount_paid: float = Field(default=0, ge=0, description="Amount already paid")
    currency: str = Field(default="USD", min_length=3, max_length=3, description="ISO 4217 currency code")
    notes: str = ""
    payment_terms: str = ""


class Invoice(MongoModel):
    """Sales invoice or purchase bill.

    Indexed on invoice_number - unique, status, type, created_at.
    """

    invoice_number: str  # INV-YYYYMMDD-NNNN
    type: InvoiceType
    buyer_name: str = ""
    buyer_email: str = ""
    buyer_address: str = ""
    supplier_name: str = ""
    sales_contract_number: str = ""
    purchase_contract_number: str = ""
    invoice_date: date
    due_date: date
    items: list[InvoiceItem]
    subtotal: float
    tax_rate: float
    tax_amount: float
    discount: float
    total_amount: float
    amount_paid: float
    balance_due: float
    currency: str = "USD"
    notes: str = ""
    payment_terms: str = ""
    status: InvoiceStatus = InvoiceStatus.DRAFT
    paid_at: datetime | None = None
    created_by: str
    created_at: datetime = Field(default_factory=now)

    @field_serializer("invoice_date", "due_date")
    def _serialize_date(self, value: date) -> str:
        # BSON has no date-only type
        return value.isoformat()
