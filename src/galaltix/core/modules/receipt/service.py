from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from galaltix.core.core import Service
from galaltix.core.modules.receipt.models import GoodsReceipt, GoodsReceiptDraft
from galaltix.core.modules.sequence.models import DocumentType
from galaltix.core.pagination import PaginationResult
from galaltix.errors import NotFoundError

logger = structlog.get_logger(__name__)


class ReceiptService(Service):
    """Goods receipts numbered from the RCP stream."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("goods_receipts")

    async def on_start(self) -> None:
        await self._collection.create_index([("receipt_number", 1)], unique=True)
        await self._collection.create_index([("purchase_contract_number", 1)])
        await self._collection.create_index([("created_at", -1)])

    async def create_receipt(self, draft: GoodsReceiptDraft, created_by: str) -> GoodsReceipt:
        """Record a goods receipt; nothing is written unless a number was allocated."""
        receipt_number = await self.core.services.sequence.allocate(DocumentType.RECEIPT)
        receipt = GoodsReceipt(receipt_number=receipt_number, created_by=created_by, **draft.model_dump())
        await self._collection.insert_one(receipt.to_mongo())
        logger.info(
            "goods_receipt_created",
            receipt_number=receipt_number,
            contract=receipt.purchase_contract_number,
            weight=receipt.received_weight,
        )
        return receipt

    async def list_receipts(
        self, limit: int = 50, offset: int = 0, purchase_contract_number: str | None = None
    ) -> PaginationResult[GoodsReceipt]:
        query: dict[str, Any] = {}
        if purchase_contract_number:
            query["purchase_contract_number"] = purchase_contract_number
        total = await self._collection.count_documents(query)
        cursor = self._collection.find(query).sort("created_at", -1).skip(offset).limit(limit)
        items = await GoodsReceipt.list_cursor(cursor)
        return PaginationResult(items=items, total=total, limit=limit, offset=offset)

    async def get_receipt_by_number(self, receipt_number: str) -> GoodsReceipt:
        doc = await self._collection.find_one({"receipt_number": receipt_number})
        if doc is None:
            raise NotFoundError(f"Goods receipt '{receipt_number}' not found")
        return GoodsReceipt.model_validate(doc)
