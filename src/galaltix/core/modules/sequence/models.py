"""Counters and issued reference codes for daily document numbering."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from galaltix.core.db import MongoModel
from galaltix.utils import now


class DocumentType(StrEnum):
    """Document types with their own numbering stream; the value is the code prefix."""

    INVOICE = "INV"
    RECEIPT = "RCP"


class AllocationTier(StrEnum):
    """Strategy that produced a reference code."""

    ATOMIC = "atomic"
    OPTIMISTIC = "optimistic"
    TIMESTAMP = "timestamp"


class Counter(MongoModel):
    """Last sequence issued for one numbering stream.

    counter_key is the stream id (PREFIX-COUNTERKEY, e.g. INV-20260203).
    Indexed on counter_key - unique.
    """

    counter_key: str
    current_sequence: int = 0  # Next number will be current_sequence + 1
    updated_at: datetime = Field(default_factory=now)


class ReferenceClaim(MongoModel):
    """Committed claim on a reference code.

    Indexed on code - unique, on counter_key, and on (stem, sequence) for the highest-sequence lookup.
    """

    code: str
    stem: str  # PREFIX-COUNTERKEY-, shared by every code of the stream
    prefix: str
    counter_key: str
    sequence: int | None  # None for timestamp fallback codes
    tier: AllocationTier
    created_at: datetime = Field(default_factory=now)


class CounterView(BaseModel):
    """Counter state for a numbering stream (API representation)."""

    document_type: DocumentType = Field(..., description="Document type of the stream")
    counter_key: str = Field(..., description="Counter key, the YYYYMMDD date stamp for daily streams")
    current_sequence: int = Field(..., description="Last sequence issued (0 if none)", ge=0)
    next_code: str = Field(..., description="Code the next allocation would produce (not reserved)")
