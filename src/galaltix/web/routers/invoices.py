from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from galaltix.core.modules.invoice.models import Invoice, InvoiceDraft, InvoiceStatus, InvoiceType
from galaltix.core.pagination import PaginationResult
from galaltix.web.deps import AppDep, AuthTokenDep
from galaltix.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["invoices"])


class UpdateInvoiceStatusRequest(BaseModel):
    """Request to change invoice status."""

    status: InvoiceStatus = Field(..., description="New status")


class RecordPaymentRequest(BaseModel):
    """Request to record a payment against an invoice."""

    amount: float = Field(..., gt=0, description="Amount received, in the invoice currency")


@router.get(
    "/invoices",
    summary="List invoices",
    description="Get paginated invoices, newest first, optionally filtered by status and type.",
    operation_id="listInvoices",
    responses={
        200: {"description": "Paginated list of invoices"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_invoices(
    app: AppDep,
    auth_token: AuthTokenDep,
    limit: Annotated[int, Query(ge=1, le=500, description="Maximum items to return")] = 50,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
    status: Annotated[InvoiceStatus | None, Query(description="Only invoices in this status")] = None,
    type: Annotated[InvoiceType | None, Query(description="Only sales invoices or purchase bills")] = None,
) -> PaginationResult[Invoice]:
    return await app.get_invoices(auth_token, limit, offset, status, type)


@router.get(
    "/invoices/{invoice_number}",
    summary="Get invoice by number",
    description="Get an invoice by its reference number, e.g. `INV-20260203-0001`.",
    operation_id="getInvoice",
    responses={
        200: {"description": "Invoice details"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Invoice not found"},
    },
)
async def get_invoice(invoice_number: str, app: AppDep, auth_token: AuthTokenDep) -> Invoice:
    return await app.get_invoice(auth_token, invoice_number)


@router.post(
    "/invoices",
    summary="Create invoice",
    description=(
        "Create an invoice. The invoice number (`INV-YYYYMMDD-NNNN`) is allocated by the server; "
        "line amounts and totals are computed from the items.\n\n"
        "If no number can be allocated the invoice is **not** created and 503 is returned."
    ),
    operation_id="createInvoice",
    status_code=201,
    responses={
        201: {"description": "Invoice created successfully"},
        400: {"model": ErrorResponse, "description": "Invalid invoice data"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        503: {"model": ErrorResponse, "description": "No reference number could be issued"},
    },
)
async def create_invoice(request: InvoiceDraft, app: AppDep, auth_token: AuthTokenDep) -> Invoice:
    return await app.create_invoice(auth_token, request)


@router.patch(
    "/invoices/{invoice_number}/status",
    summary="Update invoice status",
    description="Change the status of an invoice. Cancelled invoices cannot be changed.",
    operation_id="updateInvoiceStatus",
    responses={
        200: {"description": "Invoice updated"},
        400: {"model": ErrorResponse, "description": "Status change not allowed"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Invoice not found"},
    },
)
async def update_invoice_status(
    invoice_number: str, request: UpdateInvoiceStatusRequest, app: AppDep, auth_token: AuthTokenDep
) -> Invoice:
    return await app.update_invoice_status(auth_token, invoice_number, request.status)


@router.post(
    "/invoices/{invoice_number}/payments",
    summary="Record payment",
    description="Apply a payment to an invoice. The invoice becomes `PAID` once its balance reaches zero.",
    operation_id="recordInvoicePayment",
    responses={
        200: {"description": "Payment recorded"},
        400: {"model": ErrorResponse, "description": "Invoice cancelled or already paid"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Invoice not found"},
    },
)
async def record_payment(
    invoice_number: str, request: RecordPaymentRequest, app: AppDep, auth_token: AuthTokenDep
) -> Invoice:
    return await app.record_invoice_payment(auth_token, invoice_number, request.amount)
