from datetime import date, datetime

from pydantic import BaseModel, Field, field_serializer

from galaltix.core.db import MongoModel
from galaltix.utils import now


class GoodsReceiptDraft(BaseModel):
    """Goods received against a purchase contract; the number is assigned on create."""

    purchase_contract_number: str = Field(..., min_length=1, description="Purchase contract being delivered")
    supplier_name: str = Field(..., min_length=1, description="Delivering supplier")
    commodity: str = Field(..., min_length=1, description="Commodity received, e.g. 'PMS'")
    location: str = Field(..., min_length=1, description="Receiving depot or tank")
    received_weight: float = Field(..., gt=0, description="Received quantity in metric tons")
    grade: str = Field(default="", description="Quality grade")
    received_date: date = Field(..., description="Date the goods arrived")
    notes: str = ""


class GoodsReceipt(MongoModel):
    """Goods receipt note.

    Indexed on receipt_number - unique, purchase_contract_number, created_at.
    """

    receipt_number: str  # RCP-YYYYMMDD-NNNN
    purchase_contract_number: str
    supplier_name: str
    commodity: str
    location: str
    received_weight: float
    grade: str = ""
    received_date: date
    notes: str = ""
    created_by: str
    created_at: datetime = Field(default_factory=now)

    @field_serializer("received_date")
    def _serialize_date(self, value: date) -> str:
        return value.isoformat()
