"""Tests for the three-tier reference allocator."""

import asyncio

import pytest

from galaltix.core.modules.sequence.formatting import is_reference_code, parse_sequence
from galaltix.errors import StoreUnreachableError, ValidationError

KEY = "20260203"


class TestAtomicAllocation:
    """Allocation through the atomic counter."""

    @pytest.mark.asyncio
    async def test_first_codes_of_a_new_stream(self, store, make_allocator):
        allocator = make_allocator(store)

        assert await allocator.allocate_next(KEY, "INV") == "INV-20260203-0001"
        assert await allocator.allocate_next(KEY, "INV") == "INV-20260203-0002"

    @pytest.mark.asyncio
    async def test_sequential_calls_increase_by_one(self, store, make_allocator):
        allocator = make_allocator(store)

        codes = [await allocator.allocate_next(KEY, "INV") for _ in range(6)]

        assert [parse_sequence(code) for code in codes] == [1, 2, 3, 4, 5, 6]
        assert store.counters[("counters", "INV-20260203")] == 6

    @pytest.mark.asyncio
    async def test_concurrent_calls_get_distinct_gap_free_codes(self, store, make_allocator):
        allocator = make_allocator(store)

        codes = await asyncio.gather(*(allocator.allocate_next(KEY, "INV") for _ in range(25)))

        assert len(set(codes)) == 25
        assert sorted(parse_sequence(code) for code in codes) == list(range(1, 26))

    @pytest.mark.asyncio
    async def test_every_code_is_claimed(self, store, make_allocator):
        allocator = make_allocator(store)

        code = await allocator.allocate_next(KEY, "INV")

        assert store.claimed_codes() == [code]

    @pytest.mark.asyncio
    async def test_prefixes_have_independent_streams(self, store, make_allocator):
        allocator = make_allocator(store)

        await allocator.allocate_next(KEY, "INV")
        await allocator.allocate_next(KEY, "INV")

        assert await allocator.allocate_next(KEY, "RCP") == "RCP-20260203-0001"

    @pytest.mark.asyncio
    async def test_new_day_restarts_at_one(self, store, make_allocator):
        allocator = make_allocator(store)

        await allocator.allocate_next("20260203", "INV")
        await allocator.allocate_next("20260203", "INV")

        assert await allocator.allocate_next("20260204", "INV") == "INV-20260204-0001"
        assert store.counters[("counters", "INV-20260203")] == 2

    @pytest.mark.asyncio
    async def test_transient_error_falls_back_to_optimistic(self, store_factory, make_allocator):
        store = store_factory(atomic_error=StoreUnreachableError("connection reset"))
        allocator = make_allocator(store)

        assert await allocator.allocate_next(KEY, "INV") == "INV-20260203-0001"
        # Counter was lifted past the optimistic claim, so the atomic path resumes above it
        assert await allocator.allocate_next(KEY, "INV") == "INV-20260203-0002"

    @pytest.mark.asyncio
    async def test_lagging_counter_escalates_instead_of_duplicating(self, store, make_allocator):
        allocator = make_allocator(store)
        for code in ("INV-20260203-0001", "INV-20260203-0002", "INV-20260203-0003"):
            await store.insert_unique_or_fail("reference_claims", {"code": code}, "code")

        assert await allocator.allocate_next(KEY, "INV") == "INV-20260203-0004"
        assert await allocator.allocate_next(KEY, "INV") == "INV-20260203-0005"


class TestOptimisticAllocation:
    """Allocation when the store has no atomic increment."""

    @pytest.mark.asyncio
    async def test_sequential_without_atomic_increment(self, store_factory, make_allocator):
        allocator = make_allocator(store_factory(atomic=False))

        codes = [await allocator.allocate_next(KEY, "RCP") for _ in range(3)]

        assert codes == ["RCP-20260203-0001", "RCP-20260203-0002", "RCP-20260203-0003"]

    @pytest.mark.asyncio
    async def test_retries_until_a_candidate_is_accepted(self, store_factory, make_allocator, recording_sleep):
        rejected = {"INV-20260203-0001", "INV-20260203-0002", "INV-20260203-0003"}
        store = store_factory(atomic=False, reject=lambda code: code in rejected)
        allocator = make_allocator(store)

        code = await allocator.allocate_next(KEY, "INV")

        assert code == "INV-20260203-0004"
        assert store.commit_attempts == [
            "INV-20260203-0001",
            "INV-20260203-0002",
            "INV-20260203-0003",
            "INV-20260203-0004",
        ]
        assert recording_sleep.delays == pytest.approx([0.05, 0.10, 0.15])

    @pytest.mark.asyncio
    async def test_continues_after_highest_claimed_code(self, store_factory, make_allocator):
        store = store_factory(atomic=False)
        await store.insert_unique_or_fail("reference_claims", {"code": "INV-20260203-0007"}, "code")
        allocator = make_allocator(store)

        assert await allocator.allocate_next(KEY, "INV") == "INV-20260203-0008"

    @pytest.mark.asyncio
    async def test_attempt_offset_skips_past_a_stale_maximum(self, store_factory, make_allocator):
        # 0008 is taken by a writer whose claim the maximum query does not see yet
        store = store_factory(atomic=False, reject=lambda code: code == "INV-20260203-0008")
        await store.insert_unique_or_fail("reference_claims", {"code": "INV-20260203-0007"}, "code")
        allocator = make_allocator(store)

        code = await allocator.allocate_next(KEY, "INV")

        # Both attempts read 7 as the maximum; the second adds its offset
        assert code == "INV-20260203-0009"
        assert store.commit_attempts[1:] == ["INV-20260203-0008", "INV-20260203-0009"]

    @pytest.mark.asyncio
    async def test_concurrent_calls_never_duplicate(self, store_factory, make_allocator):
        store = store_factory(atomic=False)
        allocator = make_allocator(store)

        codes = await asyncio.gather(*(allocator.allocate_next(KEY, "INV") for _ in range(15)))

        assert len(set(codes)) == 15
        assert all(code.startswith("INV-20260203-") and is_reference_code(code) for code in codes)


class TestTimestampFallback:
    """Allocation after the optimistic retries run out."""

    @pytest.mark.asyncio
    async def test_exhausted_retries_return_fallback_code(self, store_factory, make_allocator, recording_sleep):
        store = store_factory(atomic=False, reject=lambda code: parse_sequence(code) is not None)
        allocator = make_allocator(store, max_attempts=5)

        code = await allocator.allocate_next(KEY, "INV")

        assert code.startswith("INV-20260203-")
        assert is_reference_code(code)
        assert parse_sequence(code) is None
        assert len(store.commit_attempts) == 6
        assert store.claimed_codes() == [code]
        # No wait after the final failed attempt
        assert len(recording_sleep.delays) == 4


class TestFailures:
    """Errors that cross the allocator boundary."""

    @pytest.mark.asyncio
    async def test_unreachable_store_raises(self, store, make_allocator):
        store.unreachable = True
        allocator = make_allocator(store)

        with pytest.raises(StoreUnreachableError):
            await allocator.allocate_next(KEY, "INV")
        assert store.claimed_codes() == []

    @pytest.mark.asyncio
    async def test_invalid_prefix(self, store, make_allocator):
        allocator = make_allocator(store)

        with pytest.raises(ValidationError, match="prefix"):
            await allocator.allocate_next(KEY, "inv")

    @pytest.mark.asyncio
    async def test_invalid_counter_key(self, store, make_allocator):
        allocator = make_allocator(store)

        with pytest.raises(ValidationError, match="counter key"):
            await allocator.allocate_next("", "INV")
        with pytest.raises(ValidationError, match="counter key"):
            await allocator.allocate_next("2026-02-03", "INV")


class TestPreview:
    """Tests for preview_next."""

    @pytest.mark.asyncio
    async def test_preview_of_new_stream(self, store, make_allocator):
        allocator = make_allocator(store)

        assert await allocator.preview_next(KEY, "INV") == "INV-20260203-0001"

    @pytest.mark.asyncio
    async def test_preview_does_not_reserve(self, store, make_allocator):
        allocator = make_allocator(store)
        await allocator.allocate_next(KEY, "INV")

        first = await allocator.preview_next(KEY, "INV")
        second = await allocator.preview_next(KEY, "INV")

        assert first == second == "INV-20260203-0002"
        assert store.counters[("counters", "INV-20260203")] == 1

    @pytest.mark.asyncio
    async def test_intervening_allocation_changes_the_outcome(self, store, make_allocator):
        allocator = make_allocator(store)

        preview = await allocator.preview_next(KEY, "INV")
        other_caller = await allocator.allocate_next(KEY, "INV")
        mine = await allocator.allocate_next(KEY, "INV")

        assert other_caller == preview
        assert mine != preview
        assert mine == "INV-20260203-0002"

    @pytest.mark.asyncio
    async def test_preview_sees_optimistic_claims(self, store_factory, make_allocator):
        store = store_factory(atomic=False)
        allocator = make_allocator(store)
        await allocator.allocate_next(KEY, "INV")
        await allocator.allocate_next(KEY, "INV")

        assert await allocator.preview_next(KEY, "INV") == "INV-20260203-0003"

    @pytest.mark.asyncio
    async def test_current_sequence(self, store, make_allocator):
        allocator = make_allocator(store)
        assert await allocator.current_sequence(KEY, "INV") == 0

        await allocator.allocate_next(KEY, "INV")

        assert await allocator.current_sequence(KEY, "INV") == 1
