"""Record store primitives used by the reference allocator."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Protocol
from uuid import uuid4

from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import ConnectionFailure, DuplicateKeyError, OperationFailure

from galaltix.errors import PrimitiveUnavailableError, StoreUnreachableError, UniquenessConflictError
from galaltix.utils import now


class SequenceStore(Protocol):
    """Operations the allocator needs from the underlying store.

    Implementations raise StoreUnreachableError when the store cannot be reached,
    PrimitiveUnavailableError when a counter operation is not possible, and
    UniquenessConflictError when a unique insert collides.
    """

    async def upsert_if_absent(self, collection: str, key: str, initial_value: int) -> None: ...

    async def atomic_increment(self, collection: str, key: str) -> int: ...

    async def read_value(self, collection: str, key: str) -> int | None: ...

    async def raise_to(self, collection: str, key: str, value: int) -> None: ...

    async def query_max_matching(self, collection: str, key_pattern: str) -> int | None: ...

    async def insert_unique_or_fail(self, collection: str, record: dict[str, Any], unique_field: str) -> None: ...


@contextmanager
def _store_errors() -> Iterator[None]:
    """Translate driver connectivity errors into StoreUnreachableError."""
    try:
        yield
    except ConnectionFailure as e:
        raise StoreUnreachableError(f"Record store is unreachable: {e}") from e


class MongoSequenceStore:
    """SequenceStore backed by MongoDB collections.

    Counter documents are addressed by `counter_key` and hold `current_sequence`.
    Claim documents carry `code`, the `stem` shared by every code of their stream
    and the numeric `sequence` (None for timestamp fallback codes).
    """

    KEY_FIELD = "counter_key"
    VALUE_FIELD = "current_sequence"
    STEM_FIELD = "stem"
    SEQUENCE_FIELD = "sequence"

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._database = database

    async def upsert_if_absent(self, collection: str, key: str, initial_value: int) -> None:
        with _store_errors():
            try:
                await self._database.get_collection(collection).update_one(
                    {self.KEY_FIELD: key},
                    {"$setOnInsert": {"_id": uuid4(), self.VALUE_FIELD: initial_value, "updated_at": now()}},
                    upsert=True,
                )
            except DuplicateKeyError:
                # A concurrent caller inserted the same counter first
                pass
            except OperationFailure as e:
                raise PrimitiveUnavailableError(f"Counter upsert failed for '{key}': {e}") from e

    async def atomic_increment(self, collection: str, key: str) -> int:
        with _store_errors():
            try:
                doc = await self._database.get_collection(collection).find_one_and_update(
                    {self.KEY_FIELD: key},
                    {"$inc": {self.VALUE_FIELD: 1}, "$set": {"updated_at": now()}},
                    return_document=ReturnDocument.AFTER,
                )
            except OperationFailure as e:
                raise PrimitiveUnavailableError(f"Atomic increment failed for '{key}': {e}") from e
        if doc is None:
            raise PrimitiveUnavailableError(f"Counter '{key}' does not exist")
        return int(doc[self.VALUE_FIELD])

    async def read_value(self, collection: str, key: str) -> int | None:
        with _store_errors():
            doc = await self._database.get_collection(collection).find_one({self.KEY_FIELD: key})
        if doc is None:
            return None
        return int(doc[self.VALUE_FIELD])

    async def raise_to(self, collection: str, key: str, value: int) -> None:
        """Lift the counter to at least value, creating it when missing."""
        coll = self._database.get_collection(collection)
        update = {"$max": {self.VALUE_FIELD: value}, "$set": {"updated_at": now()}}
        with _store_errors():
            try:
                try:
                    await coll.update_one(
                        {self.KEY_FIELD: key}, {**update, "$setOnInsert": {"_id": uuid4()}}, upsert=True
                    )
                except DuplicateKeyError:
                    # Lost the insert race; the counter exists now
                    await coll.update_one({self.KEY_FIELD: key}, update)
            except OperationFailure as e:
                raise PrimitiveUnavailableError(f"Counter lift failed for '{key}': {e}") from e

    async def query_max_matching(self, collection: str, key_pattern: str) -> int | None:
        """Return the highest numeric sequence among claims whose stem is key_pattern.

        Served by the (stem, sequence) index, so the cost does not grow with the stream.
        """
        with _store_errors():
            doc = await self._database.get_collection(collection).find_one(
                {self.STEM_FIELD: key_pattern, self.SEQUENCE_FIELD: {"$ne": None}},
                {self.SEQUENCE_FIELD: 1},
                sort=[(self.SEQUENCE_FIELD, -1)],
            )
        if doc is None:
            return None
        return int(doc[self.SEQUENCE_FIELD])

    async def insert_unique_or_fail(self, collection: str, record: dict[str, Any], unique_field: str) -> None:
        with _store_errors():
            try:
                await self._database.get_collection(collection).insert_one(record)
            except DuplicateKeyError as e:
                key_pattern = (e.details or {}).get("keyPattern") or {}
                if unique_field not in key_pattern:
                    raise
                raise UniquenessConflictError(str(record.get(unique_field))) from e
