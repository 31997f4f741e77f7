from typing import Any

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from galaltix.core.core import Service
from galaltix.core.modules.invoice.models import Invoice, InvoiceDraft, InvoiceStatus, InvoiceType
from galaltix.core.modules.invoice.totals import calculate_totals
from galaltix.core.modules.invoice.validators import validate_draft
from galaltix.core.modules.sequence.models import DocumentType
from galaltix.core.pagination import PaginationResult
from galaltix.errors import NotFoundError, ValidationError
from galaltix.utils import now

logger = structlog.get_logger(__name__)


class InvoiceService(Service):
    """Sales invoices and purchase bills numbered from the INV stream."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("invoices")

    async def on_start(self) -> None:
        await self._collection.create_index([("invoice_number", 1)], unique=True)
        await self._collection.create_index([("status", 1)])
        await self._collection.create_index([("type", 1)])
        await self._collection.create_index([("created_at", -1)])

    async def create_invoice(self, draft: InvoiceDraft, created_by: str) -> Invoice:
        """Create an invoice under a newly allocated number.

        The number is claimed before anything is written; if allocation fails
        the error propagates and no invoice exists.
        """
        validate_draft(draft)
        totals = calculate_totals(draft.items, draft.tax_rate, draft.discount, draft.amount_paid)
        invoice_number = await self.core.services.sequence.allocate(DocumentType.INVOICE)

        fields = draft.model_dump(exclude={"items"})
        fields.update(totals.model_dump())
        invoice = Invoice(invoice_number=invoice_number, created_by=created_by, **fields)
        if invoice.balance_due <= 0:
            invoice.status = InvoiceStatus.PAID
            invoice.paid_at = now()

        await self._collection.insert_one(invoice.to_mongo())
        logger.info("invoice_created", invoice_number=invoice_number, type=invoice.type, total=invoice.total_amount)
        return invoice

    async def list_invoices(
        self,
        limit: int = 50,
        offset: int = 0,
        status: InvoiceStatus | None = None,
        invoice_type: InvoiceType | None = None,
    ) -> PaginationResult[Invoice]:
        """Get paginated invoices, newest first."""
        query: dict[str, Any] = {}
        if status is not None:
            query["status"] = status
        if invoice_type is not None:
            query["type"] = invoice_type

        total = await self._collection.count_documents(query)
        cursor = self._collection.find(query).sort("created_at", -1).skip(offset).limit(limit)
        items = await Invoice.list_cursor(cursor)
        return PaginationResult(items=items, total=total, limit=limit, offset=offset)

    async def get_invoice_by_number(self, invoice_number: str) -> Invoice:
        doc = await self._collection.find_one({"invoice_number": invoice_number})
        if doc is None:
            raise NotFoundError(f"Invoice '{invoice_number}' not found")
        return Invoice.model_validate(doc)

    async def update_status(self, invoice_number: str, status: InvoiceStatus) -> Invoice:
        """Change invoice status. Cancelled invoices are final."""
        query: dict[str, Any] = {"invoice_number": invoice_number, "status": {"$ne": InvoiceStatus.CANCELLED.value}}
        if status == InvoiceStatus.PAID:
            query["balance_due"] = {"$lte": 0}
        doc = await self._collection.find_one_and_update(
            query, {"$set": {"status": status.value}}, return_document=ReturnDocument.AFTER
        )
        if doc is None:
            invoice = await self.get_invoice_by_number(invoice_number)
            if invoice.status == InvoiceStatus.CANCELLED:
                raise ValidationError(f"Invoice '{invoice_number}' is cancelled")
            raise ValidationError("Record a payment to mark an invoice with an open balance as paid")
        logger.info("invoice_status_changed", invoice_number=invoice_number, status=status)
        return Invoice.model_validate(doc)

    async def record_payment(self, invoice_number: str, amount: float) -> Invoice:
        """Apply a payment; the invoice becomes PAID once the balance reaches zero."""
        if amount <= 0:
            raise ValidationError("Payment amount must be positive")

        # Single server-side update so concurrent payments all count
        settled = {"$lte": ["$balance_due", 0]}
        doc = await self._collection.find_one_and_update(
            {
                "invoice_number": invoice_number,
                "status": {"$nin": [InvoiceStatus.PAID.value, InvoiceStatus.CANCELLED.value]},
            },
            [
                {"$set": {"amount_paid": {"$round": [{"$add": ["$amount_paid", amount]}, 2]}}},
                {
                    "$set": {
                        "balance_due": {
                            "$round": [{"$max": [0, {"$subtract": ["$total_amount", "$amount_paid"]}]}, 2]
                        }
                    }
                },
                {
                    "$set": {
                        "status": {"$cond": [settled, InvoiceStatus.PAID.value, "$status"]},
                        "paid_at": {"$cond": [settled, now(), "$paid_at"]},
                    }
                },
            ],
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            invoice = await self.get_invoice_by_number(invoice_number)
            if invoice.status == InvoiceStatus.CANCELLED:
                raise ValidationError(f"Invoice '{invoice_number}' is cancelled")
            raise ValidationError(f"Invoice '{invoice_number}' is already paid")

        updated = Invoice.model_validate(doc)
        logger.info(
            "invoice_payment_recorded",
            invoice_number=invoice_number,
            amount=amount,
            balance_due=updated.balance_due,
            status=updated.status,
        )
        return updated
