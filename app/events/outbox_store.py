from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, List, Optional
from uuid import UUID

from tortoise.expressions import F
from tortoise.transactions import in_transaction

from app.core.config import OutboxProcessingOptions
from app.core.errors import OutboxTransactionRequiredError
from app.models.outbox import OutboxMessage
from app.schemas.outbox import DeadLetterFilter
from app.schemas.response import PagedResult


@dataclass(frozen=True)
class OutboxDraft:
    """A serialized event waiting to be written as a new envelope."""
    event_type: str
    payload: str
    occurred_on_utc: datetime


def _pending():
    return OutboxMessage.filter(processed_on_utc__isnull=True, dead_lettered_on_utc__isnull=True)


def _dead_letters():
    return OutboxMessage.filter(dead_lettered_on_utc__isnull=False)


class TortoiseOutboxStore:
    """
    Envelope lifecycle on top of the outbox_messages table.

    Pending:       next_attempt_on_utc set, processed/dead-lettered null
    Dispatched:    processed_on_utc set
    Dead-lettered: dead_lettered_on_utc set, next_attempt_on_utc null
    """

    def __init__(self, claim_lease: Optional[timedelta] = None):
        self._claim_lease = claim_lease if claim_lease is not None else OutboxProcessingOptions().claim_lease

    async def append(self, draft: OutboxDraft, conn: Any) -> OutboxMessage:
        """
        Inserts a new pending envelope on the caller's transaction.

        CRITICAL: passing the transaction's 'conn' is what makes the event durable
        if and only if the aggregate change it describes commits.
        """
        if conn is None or not (hasattr(conn, "commit") and hasattr(conn, "rollback")):
            raise OutboxTransactionRequiredError()

        return await OutboxMessage.create(
            event_type=draft.event_type,
            payload=draft.payload,
            occurred_on_utc=draft.occurred_on_utc,
            next_attempt_on_utc=draft.occurred_on_utc,
            attempt_count=0,
            using_db=conn,
        )

    async def claim_due(self, now: datetime, batch_size: int) -> List[OutboxMessage]:
        """
        Claims up to batch_size due envelopes, oldest first.

        Rows are locked with SKIP LOCKED where the backend supports it, and each one is
        leased by pushing next_attempt_on_utc past 'now' with a conditional update, so a
        concurrent claimant that read the same row gets zero rows back from its update.
        """
        lease_until = now + self._claim_lease
        claimed = []
        async with in_transaction() as conn:
            candidates = await (
                _pending()
                .filter(next_attempt_on_utc__lte=now)
                .order_by("occurred_on_utc", "id")
                .limit(max(1, batch_size))
                .select_for_update(skip_locked=True)
                .using_db(conn)
            )
            for message in candidates:
                updated = await (
                    _pending()
                    .filter(id=message.id, next_attempt_on_utc__lte=now)
                    .using_db(conn)
                    .update(next_attempt_on_utc=lease_until)
                )
                if updated:
                    message.next_attempt_on_utc = lease_until
                    claimed.append(message)
        return claimed

    async def mark_dispatched(self, message_id: UUID, now: datetime) -> None:
        await OutboxMessage.filter(id=message_id).update(
            processed_on_utc=now,
            next_attempt_on_utc=None,
            error=None,
        )

    async def mark_retry(self, message_id: UUID, next_attempt_on_utc: datetime, error: Optional[str] = None) -> None:
        await OutboxMessage.filter(id=message_id).update(
            attempt_count=F("attempt_count") + 1,
            next_attempt_on_utc=next_attempt_on_utc,
            error=error,
        )

    async def mark_dead_letter(self, message_id: UUID, now: datetime, error: Optional[str] = None) -> None:
        await OutboxMessage.filter(id=message_id).update(
            attempt_count=F("attempt_count") + 1,
            dead_lettered_on_utc=now,
            next_attempt_on_utc=None,
            error=error,
        )

    async def get(self, message_id: UUID) -> Optional[OutboxMessage]:
        return await OutboxMessage.get_or_none(id=message_id)

    async def requeue(self, message_id: UUID, now: datetime) -> int:
        """Moves one dead letter back to pending. Returns the number of rows moved (0 or 1)."""
        return await _dead_letters().filter(id=message_id).update(**self._requeued_state(now))

    async def requeue_matching(self, criteria: DeadLetterFilter, now: datetime) -> int:
        """Requeues dead letters matching the filter, oldest dead-lettered first, up to max_items."""
        query = _dead_letters()
        if criteria.event_type and criteria.event_type.strip():
            query = query.filter(event_type__contains=criteria.event_type.strip())
        if criteria.dead_lettered_from is not None:
            query = query.filter(dead_lettered_on_utc__gte=criteria.dead_lettered_from)
        if criteria.dead_lettered_to is not None:
            query = query.filter(dead_lettered_on_utc__lte=criteria.dead_lettered_to)

        async with in_transaction() as conn:
            ids = await (
                query.order_by("dead_lettered_on_utc", "id")
                .limit(criteria.max_items)
                .using_db(conn)
                .values_list("id", flat=True)
            )
            if not ids:
                return 0
            return await (
                _dead_letters()
                .filter(id__in=list(ids))
                .using_db(conn)
                .update(**self._requeued_state(now))
            )

    async def list_dead_letters(self, page: int, page_size: int) -> PagedResult[OutboxMessage]:
        total = await _dead_letters().count()
        items = await (
            _dead_letters()
            .order_by("-dead_lettered_on_utc", "-occurred_on_utc", "id")
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return PagedResult(items=list(items), total=total, page=page, page_size=page_size)

    async def count_dead_letters(self) -> int:
        return await _dead_letters().count()

    async def oldest_pending_occurred_on(self) -> Optional[datetime]:
        oldest = await _pending().order_by("occurred_on_utc").first()
        return oldest.occurred_on_utc if oldest else None

    @staticmethod
    def _requeued_state(now: datetime) -> dict:
        return {
            "dead_lettered_on_utc": None,
            "processed_on_utc": None,
            "error": None,
            "attempt_count": 0,
            "next_attempt_on_utc": now,
        }
