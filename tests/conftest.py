"""Shared pytest fixtures."""

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import Any

import pytest

from galaltix.core.modules.sequence.allocator import ReferenceAllocator
from galaltix.core.modules.sequence.formatting import parse_sequence
from galaltix.errors import PrimitiveUnavailableError, StoreUnreachableError, UniquenessConflictError


class InMemorySequenceStore:
    """SequenceStore double.

    Yields to the event loop inside each operation so concurrent callers interleave
    the way they would against a remote store.
    """

    def __init__(
        self,
        *,
        atomic: bool = True,
        reject: Callable[[str], bool] | None = None,
        atomic_error: Exception | None = None,
    ) -> None:
        self.atomic = atomic
        self.reject = reject
        self.atomic_error = atomic_error
        self.unreachable = False
        self.counters: dict[tuple[str, str], int] = {}
        self.records: dict[str, dict[str, dict[str, Any]]] = {}
        self.commit_attempts: list[str] = []

    async def _round_trip(self) -> None:
        await asyncio.sleep(0)
        if self.unreachable:
            raise StoreUnreachableError

    async def upsert_if_absent(self, collection: str, key: str, initial_value: int) -> None:
        await self._round_trip()
        self.counters.setdefault((collection, key), initial_value)

    async def atomic_increment(self, collection: str, key: str) -> int:
        await self._round_trip()
        if self.atomic_error is not None:
            error, self.atomic_error = self.atomic_error, None
            raise error
        if not self.atomic:
            raise PrimitiveUnavailableError("atomic increment disabled")
        if (collection, key) not in self.counters:
            raise PrimitiveUnavailableError(f"Counter '{key}' does not exist")
        self.counters[(collection, key)] += 1
        return self.counters[(collection, key)]

    async def read_value(self, collection: str, key: str) -> int | None:
        await self._round_trip()
        return self.counters.get((collection, key))

    async def raise_to(self, collection: str, key: str, value: int) -> None:
        await self._round_trip()
        self.counters[(collection, key)] = max(self.counters.get((collection, key), 0), value)

    async def query_max_matching(self, collection: str, key_pattern: str) -> int | None:
        await self._round_trip()
        sequences = [
            seq
            for code in self.records.get(collection, {})
            if code.startswith(key_pattern) and (seq := parse_sequence(code)) is not None
        ]
        return max(sequences, default=None)

    async def insert_unique_or_fail(self, collection: str, record: dict[str, Any], unique_field: str) -> None:
        await self._round_trip()
        value = record[unique_field]
        self.commit_attempts.append(value)
        table = self.records.setdefault(collection, {})
        if value in table or (self.reject is not None and self.reject(value)):
            raise UniquenessConflictError(value)
        table[value] = record

    def claimed_codes(self) -> list[str]:
        return list(self.records.get("reference_claims", {}))


class RecordingSleep:
    """Replacement for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture
def store():
    return InMemorySequenceStore()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2026, 2, 3, 10, 30)


@pytest.fixture
def make_allocator(recording_sleep, fixed_clock):
    """Build an allocator over a given store with recorded backoff and a fixed clock."""

    def factory(store: InMemorySequenceStore, max_attempts: int = 5) -> ReferenceAllocator:
        return ReferenceAllocator(
            store,
            max_attempts=max_attempts,
            backoff=0.05,
            sleep=recording_sleep,
            clock=fixed_clock,
        )

    return factory


@pytest.fixture
def store_factory():
    """Build stores with atomic increment disabled or candidate codes rejected."""
    return InMemorySequenceStore
