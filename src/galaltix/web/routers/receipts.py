from typing import Annotated

from fastapi import APIRouter, Query

from galaltix.core.modules.receipt.models import GoodsReceipt, GoodsReceiptDraft
from galaltix.core.pagination import PaginationResult
from galaltix.web.deps import AppDep, AuthTokenDep
from galaltix.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["receipts"])


@router.get(
    "/receipts",
    summary="List goods receipts",
    description="Get paginated goods receipts, newest first.",
    operation_id="listReceipts",
    responses={
        200: {"description": "Paginated list of goods receipts"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_receipts(
    app: AppDep,
    auth_token: AuthTokenDep,
    limit: Annotated[int, Query(ge=1, le=500, description="Maximum items to return")] = 50,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
    contract: Annotated[str | None, Query(description="Only receipts for this purchase contract")] = None,
) -> PaginationResult[GoodsReceipt]:
    return await app.get_receipts(auth_token, limit, offset, contract)


@router.get(
    "/receipts/{receipt_number}",
    summary="Get goods receipt by number",
    description="Get a goods receipt by its reference number, e.g. `RCP-20260203-0001`.",
    operation_id="getReceipt",
    responses={
        200: {"description": "Goods receipt details"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Goods receipt not found"},
    },
)
async def get_receipt(receipt_number: str, app: AppDep, auth_token: AuthTokenDep) -> GoodsReceipt:
    return await app.get_receipt(auth_token, receipt_number)


@router.post(
    "/receipts",
    summary="Record goods receipt",
    description=(
        "Record goods received against a purchase contract. The receipt number "
        "(`RCP-YYYYMMDD-NNNN`) is allocated by the server; if none can be issued the "
        "receipt is not recorded and 503 is returned."
    ),
    operation_id="createReceipt",
    status_code=201,
    responses={
        201: {"description": "Goods receipt recorded"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        503: {"model": ErrorResponse, "description": "No reference number could be issued"},
    },
)
async def create_receipt(request: GoodsReceiptDraft, app: AppDep, auth_token: AuthTokenDep) -> GoodsReceipt:
    return await app.create_receipt(auth_token, request)
