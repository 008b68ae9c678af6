import pytest
from datetime import timedelta
from uuid import uuid4

from tortoise.transactions import in_transaction

from app.core.errors import OutboxTransactionRequiredError
from app.events.outbox_store import OutboxDraft, TortoiseOutboxStore
from app.models.outbox import OutboxMessage, OutboxStatus
from app.schemas.outbox import DeadLetterFilter


async def _append(store, event_type, occurred_on_utc):
    async with in_transaction() as conn:
        return await store.append(OutboxDraft(event_type, "{}", occurred_on_utc), conn)


async def _dead_letter(event_type, occurred_on_utc, dead_lettered_on_utc):
    return await OutboxMessage.create(
        event_type=event_type,
        payload="{}",
        occurred_on_utc=occurred_on_utc,
        dead_lettered_on_utc=dead_lettered_on_utc,
        attempt_count=5,
        error="boom",
    )


class TestAppend:
    @pytest.mark.asyncio
    async def test_requires_transaction(self, db, now):
        store = TortoiseOutboxStore()
        with pytest.raises(OutboxTransactionRequiredError):
            await store.append(OutboxDraft("MissionCreated|v1", "{}", now), None)
        assert await OutboxMessage.all().count() == 0

    @pytest.mark.asyncio
    async def test_writes_pending_envelope(self, db, now):
        store = TortoiseOutboxStore()
        message = await _append(store, "MissionCreated|v1", now)

        stored = await OutboxMessage.get(id=message.id)
        assert stored.status == OutboxStatus.PENDING
        assert stored.next_attempt_on_utc == now
        assert stored.attempt_count == 0

    @pytest.mark.asyncio
    async def test_rolled_back_transaction_leaves_no_envelope(self, db, now):
        store = TortoiseOutboxStore()
        with pytest.raises(RuntimeError):
            async with in_transaction() as conn:
                await store.append(OutboxDraft("MissionCreated|v1", "{}", now), conn)
                raise RuntimeError("aggregate save failed")

        assert await OutboxMessage.all().count() == 0


class TestClaimDue:
    @pytest.mark.asyncio
    async def test_oldest_first_up_to_batch_size(self, db, now):
        store = TortoiseOutboxStore()
        third = await _append(store, "C|v1", now - timedelta(minutes=1))
        first = await _append(store, "A|v1", now - timedelta(minutes=3))
        second = await _append(store, "B|v1", now - timedelta(minutes=2))

        claimed = await store.claim_due(now, 2)

        assert [m.id for m in claimed] == [first.id, second.id]
        assert [m.id for m in await store.claim_due(now, 2)] == [third.id]

    @pytest.mark.asyncio
    async def test_claimed_envelopes_are_leased(self, db, now):
        store = TortoiseOutboxStore(claim_lease=timedelta(seconds=30))
        await _append(store, "A|v1", now - timedelta(minutes=1))

        claimed = await store.claim_due(now, 10)

        assert len(claimed) == 1
        assert claimed[0].next_attempt_on_utc == now + timedelta(seconds=30)
        assert await store.claim_due(now, 10) == []
        assert len(await store.claim_due(now + timedelta(seconds=31), 10)) == 1

    @pytest.mark.asyncio
    async def test_skips_future_and_terminal_envelopes(self, db, now):
        store = TortoiseOutboxStore()
        await _append(store, "Future|v1", now + timedelta(minutes=5))
        await _dead_letter("Dead|v1", now - timedelta(minutes=10), now - timedelta(minutes=5))
        dispatched = await _append(store, "Done|v1", now - timedelta(minutes=4))
        await store.mark_dispatched(dispatched.id, now)

        assert await store.claim_due(now, 10) == []


class TestTransitions:
    @pytest.mark.asyncio
    async def test_mark_dispatched(self, db, now):
        store = TortoiseOutboxStore()
        message = await _append(store, "A|v1", now - timedelta(minutes=1))

        await store.mark_dispatched(message.id, now)

        stored = await store.get(message.id)
        assert stored.status == OutboxStatus.DISPATCHED
        assert stored.processed_on_utc == now
        assert stored.next_attempt_on_utc is None

    @pytest.mark.asyncio
    async def test_mark_retry_counts_attempt(self, db, now):
        store = TortoiseOutboxStore()
        message = await _append(store, "A|v1", now - timedelta(minutes=1))

        await store.mark_retry(message.id, now + timedelta(seconds=5), "timeout")

        stored = await store.get(message.id)
        assert stored.status == OutboxStatus.PENDING
        assert stored.attempt_count == 1
        assert stored.next_attempt_on_utc == now + timedelta(seconds=5)
        assert stored.error == "timeout"

    @pytest.mark.asyncio
    async def test_mark_dead_letter(self, db, now):
        store = TortoiseOutboxStore()
        message = await _append(store, "A|v1", now - timedelta(minutes=1))

        await store.mark_dead_letter(message.id, now, "unknown event type")

        stored = await store.get(message.id)
        assert stored.status == OutboxStatus.DEAD_LETTERED
        assert stored.dead_lettered_on_utc == now
        assert stored.next_attempt_on_utc is None
        assert stored.attempt_count == 1
        assert stored.error == "unknown event type"


class TestRequeue:
    @pytest.mark.asyncio
    async def test_requeue_resets_dead_letter(self, db, now):
        store = TortoiseOutboxStore()
        message = await _dead_letter("A|v1", now - timedelta(hours=1), now - timedelta(minutes=30))

        assert await store.requeue(message.id, now) == 1

        stored = await store.get(message.id)
        assert stored.status == OutboxStatus.PENDING
        assert stored.attempt_count == 0
        assert stored.error is None
        assert stored.next_attempt_on_utc == now

    @pytest.mark.asyncio
    async def test_requeue_ignores_pending_and_unknown(self, db, now):
        store = TortoiseOutboxStore()
        pending = await _append(store, "A|v1", now - timedelta(minutes=1))

        assert await store.requeue(pending.id, now) == 0
        assert await store.requeue(uuid4(), now) == 0
        assert (await store.get(pending.id)).next_attempt_on_utc == now - timedelta(minutes=1)

    @pytest.mark.asyncio
    async def test_requeue_matching_filters_and_limits(self, db, now):
        store = TortoiseOutboxStore()
        old = await _dead_letter("MissionCreated|v1", now - timedelta(hours=3), now - timedelta(hours=2))
        recent = await _dead_letter("MissionUpdated|v1", now - timedelta(hours=2), now - timedelta(minutes=50))
        newest = await _dead_letter("MissionDeleted|v1", now - timedelta(hours=1), now - timedelta(minutes=10))
        other = await _dead_letter("TeamCreated|v1", now - timedelta(hours=1), now - timedelta(minutes=20))

        count = await store.requeue_matching(
            DeadLetterFilter(event_type="Mission", dead_lettered_from=now - timedelta(hours=1), max_items=1),
            now,
        )

        assert count == 1
        assert (await store.get(recent.id)).status == OutboxStatus.PENDING
        for untouched in (old, newest, other):
            assert (await store.get(untouched.id)).status == OutboxStatus.DEAD_LETTERED

    @pytest.mark.asyncio
    async def test_requeue_matching_without_matches(self, db, now):
        store = TortoiseOutboxStore()
        await _dead_letter("TeamCreated|v1", now - timedelta(hours=1), now - timedelta(minutes=20))

        assert await store.requeue_matching(DeadLetterFilter(event_type="Mission"), now) == 0


class TestQueries:
    @pytest.mark.asyncio
    async def test_list_dead_letters_newest_first_paged(self, db, now):
        store = TortoiseOutboxStore()
        first = await _dead_letter("A|v1", now - timedelta(hours=3), now - timedelta(minutes=30))
        second = await _dead_letter("B|v1", now - timedelta(hours=2), now - timedelta(minutes=20))
        third = await _dead_letter("C|v1", now - timedelta(hours=1), now - timedelta(minutes=10))
        await _append(store, "Pending|v1", now - timedelta(minutes=5))

        page_one = await store.list_dead_letters(1, 2)
        page_two = await store.list_dead_letters(2, 2)

        assert page_one.total == 3
        assert [m.id for m in page_one.items] == [third.id, second.id]
        assert [m.id for m in page_two.items] == [first.id]

    @pytest.mark.asyncio
    async def test_counts_and_oldest_pending(self, db, now):
        store = TortoiseOutboxStore()
        assert await store.count_dead_letters() == 0
        assert await store.oldest_pending_occurred_on() is None

        await _dead_letter("A|v1", now - timedelta(hours=5), now - timedelta(hours=4))
        await _append(store, "B|v1", now - timedelta(minutes=7))
        await _append(store, "C|v1", now - timedelta(minutes=3))

        assert await store.count_dead_letters() == 1
        assert await store.oldest_pending_occurred_on() == now - timedelta(minutes=7)
