from datetime import datetime
from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from galaltix.core.core import Service
from galaltix.core.modules.sequence.allocator import CLAIMS_COLLECTION, COUNTERS_COLLECTION, ReferenceAllocator
from galaltix.core.modules.sequence.formatting import date_stamp
from galaltix.core.modules.sequence.models import CounterView, DocumentType
from galaltix.core.modules.sequence.store import MongoSequenceStore

logger = structlog.get_logger(__name__)


class SequenceService(Service):
    """Daily reference numbering per document type (INV-YYYYMMDD-NNNN, RCP-YYYYMMDD-NNNN)."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._counters = database.get_collection(COUNTERS_COLLECTION)
        self._claims = database.get_collection(CLAIMS_COLLECTION)
        self._store = MongoSequenceStore(database)
        self._allocator: ReferenceAllocator | None = None

    async def on_start(self) -> None:
        """Create indexes and build the allocator from config."""
        await self._counters.create_index([("counter_key", 1)], unique=True)
        await self._claims.create_index([("code", 1)], unique=True)
        await self._claims.create_index([("counter_key", 1)])
        await self._claims.create_index([("stem", 1), ("sequence", -1)])
        config = self.core.config
        self._allocator = ReferenceAllocator(
            self._store,
            max_attempts=config.sequence_max_attempts,
            backoff=config.sequence_backoff_ms / 1000,
        )
        logger.debug("sequence_service_started", max_attempts=config.sequence_max_attempts)

    @property
    def allocator(self) -> ReferenceAllocator:
        if self._allocator is None:
            raise RuntimeError("Sequence service not started")
        return self._allocator

    async def allocate(self, document_type: DocumentType, moment: datetime | None = None) -> str:
        """Claim the next reference code for document_type in today's stream."""
        return await self.allocator.allocate_next(date_stamp(moment), document_type.value)

    async def preview(self, document_type: DocumentType, moment: datetime | None = None) -> str:
        """Next code for today's stream, for display only."""
        return await self.allocator.preview_next(date_stamp(moment), document_type.value)

    async def get_counter(self, document_type: DocumentType, counter_key: str) -> CounterView:
        current = await self.allocator.current_sequence(counter_key, document_type.value)
        next_code = await self.allocator.preview_next(counter_key, document_type.value)
        return CounterView(
            document_type=document_type,
            counter_key=counter_key,
            current_sequence=current,
            next_code=next_code,
        )
