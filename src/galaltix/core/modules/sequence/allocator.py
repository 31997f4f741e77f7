"""Collision-free reference code allocation over a shared record store.

Callers may run in separate processes, so no in-process lock is used. All
coordination happens in the store, through one of three strategies tried in
order:

1. Atomic: ensure the counter exists, then increment it in a single store
   operation and claim the resulting code.
2. Optimistic: read the highest claimed sequence, claim the next candidate
   through a unique insert and retry with a growing offset and linear
   backoff when another writer got there first.
3. Timestamp: claim a base-36 timestamp code with a random suffix. Always
   unique, no longer sequential.

Every returned code has been committed to the claims collection, so a code
is never handed out twice even when strategies alternate between calls.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime

import structlog

from galaltix.core.modules.sequence.formatting import (
    COUNTER_KEY_RE,
    PREFIX_RE,
    code_stem,
    fallback_code,
    format_reference_code,
    stream_id,
)
from galaltix.core.modules.sequence.models import AllocationTier, ReferenceClaim
from galaltix.core.modules.sequence.store import SequenceStore
from galaltix.errors import (
    PrimitiveUnavailableError,
    RetryBoundExhaustedError,
    SequenceError,
    StoreUnreachableError,
    UniquenessConflictError,
    ValidationError,
)
from galaltix.utils import local_now

logger = structlog.get_logger(__name__)

COUNTERS_COLLECTION = "counters"
CLAIMS_COLLECTION = "reference_claims"
CLAIM_UNIQUE_FIELD = "code"
FALLBACK_ATTEMPTS = 3


class ReferenceAllocator:
    """Issues unique PREFIX-COUNTERKEY-NNNN codes per numbering stream."""

    def __init__(
        self,
        store: SequenceStore,
        *,
        max_attempts: int = 5,
        backoff: float = 0.05,
        counters_collection: str = COUNTERS_COLLECTION,
        claims_collection: str = CLAIMS_COLLECTION,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._store = store
        self._max_attempts = max_attempts
        self._backoff = backoff
        self._counters = counters_collection
        self._claims = claims_collection
        self._sleep = sleep
        self._clock = clock

    async def allocate_next(self, counter_key: str, prefix: str) -> str:
        """Claim and return the next reference code for the stream.

        Raises:
            ValidationError: If prefix or counter_key cannot form a valid code
            StoreUnreachableError: If the store cannot be reached, nothing was issued
        """
        _validate_stream(counter_key, prefix)

        code = await self._allocate_atomic(counter_key, prefix)
        if code is not None:
            return code

        try:
            return await self._allocate_optimistic(counter_key, prefix)
        except RetryBoundExhaustedError as e:
            logger.warning("optimistic_allocation_exhausted", counter_key=counter_key, prefix=prefix, attempts=e.attempts)

        return await self._allocate_timestamp(counter_key, prefix)

    async def preview_next(self, counter_key: str, prefix: str) -> str:
        """Return the code the next allocation would most likely produce, without reserving it."""
        _validate_stream(counter_key, prefix)
        current = await self._store.read_value(self._counters, stream_id(prefix, counter_key))
        claimed = await self._store.query_max_matching(self._claims, code_stem(prefix, counter_key))
        return format_reference_code(prefix, counter_key, max(current or 0, claimed or 0) + 1)

    async def current_sequence(self, counter_key: str, prefix: str) -> int:
        _validate_stream(counter_key, prefix)
        return await self._store.read_value(self._counters, stream_id(prefix, counter_key)) or 0

    async def _allocate_atomic(self, counter_key: str, prefix: str) -> str | None:
        """Tier 1. Returns None when the caller should fall back to optimistic allocation."""
        key = stream_id(prefix, counter_key)
        try:
            await self._store.upsert_if_absent(self._counters, key, 0)
            sequence = await self._store.atomic_increment(self._counters, key)
        except (PrimitiveUnavailableError, StoreUnreachableError) as e:
            logger.warning("atomic_increment_unavailable", counter_key=key, error=str(e))
            return None

        code = format_reference_code(prefix, counter_key, sequence)
        try:
            await self._claim(code, prefix, counter_key, sequence, AllocationTier.ATOMIC)
        except UniquenessConflictError:
            # Counter lags behind codes issued by the optimistic path
            logger.warning("atomic_counter_behind_claims", counter_key=key, code=code)
            return None
        except StoreUnreachableError as e:
            logger.warning("atomic_claim_failed", counter_key=key, code=code, error=str(e))
            return None

        logger.debug("reference_allocated", code=code, tier=AllocationTier.ATOMIC)
        return code

    async def _allocate_optimistic(self, counter_key: str, prefix: str) -> str:
        """Tier 2. Raises RetryBoundExhaustedError when every candidate collided."""
        stem = code_stem(prefix, counter_key)
        for attempt in range(self._max_attempts):
            last = await self._store.query_max_matching(self._claims, stem)
            # The attempt offset steers away from writers that read the same stale maximum
            sequence = (last or 0) + 1 + attempt
            code = format_reference_code(prefix, counter_key, sequence)
            try:
                await self._claim(code, prefix, counter_key, sequence, AllocationTier.OPTIMISTIC)
            except UniquenessConflictError:
                logger.warning(
                    "reference_code_conflict",
                    code=code,
                    attempt=attempt + 1,
                    max_attempts=self._max_attempts,
                )
                if attempt + 1 < self._max_attempts:
                    await self._sleep(self._backoff * (attempt + 1))
                continue

            await self._lift_counter(stream_id(prefix, counter_key), sequence)
            logger.debug("reference_allocated", code=code, tier=AllocationTier.OPTIMISTIC, attempt=attempt + 1)
            return code

        raise RetryBoundExhaustedError(self._max_attempts)

    async def _allocate_timestamp(self, counter_key: str, prefix: str) -> str:
        """Tier 3. Only a store that rejects every write can make this fail."""
        for _ in range(FALLBACK_ATTEMPTS):
            code = fallback_code(prefix, counter_key, self._clock())
            try:
                await self._claim(code, prefix, counter_key, None, AllocationTier.TIMESTAMP)
            except UniquenessConflictError:
                logger.warning("fallback_code_conflict", code=code)
                continue
            logger.warning("reference_allocated_with_fallback", code=code, tier=AllocationTier.TIMESTAMP)
            return code
        raise RetryBoundExhaustedError(FALLBACK_ATTEMPTS)

    async def _claim(
        self, code: str, prefix: str, counter_key: str, sequence: int | None, tier: AllocationTier
    ) -> None:
        claim = ReferenceClaim(
            code=code,
            stem=code_stem(prefix, counter_key),
            prefix=prefix,
            counter_key=counter_key,
            sequence=sequence,
            tier=tier,
        )
        await self._store.insert_unique_or_fail(self._claims, claim.to_mongo(), CLAIM_UNIQUE_FIELD)

    async def _lift_counter(self, key: str, sequence: int) -> None:
        """Move a lagging counter past an optimistically claimed sequence."""
        try:
            await self._store.raise_to(self._counters, key, sequence)
        except SequenceError as e:
            logger.warning("counter_lift_failed", counter_key=key, sequence=sequence, error=str(e))


def _validate_stream(counter_key: str, prefix: str) -> None:
    if not PREFIX_RE.fullmatch(prefix):
        raise ValidationError(f"Invalid reference prefix '{prefix}': use upper-case letters only")
    if not COUNTER_KEY_RE.fullmatch(counter_key):
        raise ValidationError(f"Invalid counter key '{counter_key}': use digits and upper-case letters only")
