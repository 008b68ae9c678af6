from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar

from tortoise.transactions import in_transaction

from app.events.outbox_store import OutboxDraft, TortoiseOutboxStore
from app.events.serializer import EventSerializer
from app.models.aggregate import AggregateRoot

T = TypeVar("T")


class UnitOfWork:
    """
    Commits aggregate state and the outbox envelopes for their pending events in
    one database transaction.
    """

    def __init__(self, outbox_store: Optional[Any] = None, serializer: Optional[EventSerializer] = None):
        self.outbox_store = outbox_store or TortoiseOutboxStore()
        self.serializer = serializer or EventSerializer()

    async def commit(
        self,
        save_changes: Callable[[Any], Awaitable[T]],
        aggregates: Iterable[AggregateRoot] = (),
    ) -> T:
        """
        Runs save_changes(conn) and appends one envelope per pending event on the same
        connection. Events are cleared from the aggregates only once the transaction
        has committed; on failure they stay pending and nothing is written.
        """
        aggregates = list(aggregates)
        async with in_transaction() as conn:
            result = await save_changes(conn)
            for aggregate in aggregates:
                for event in aggregate.domain_events:
                    event_type, payload = self.serializer.serialize(event)
                    await self.outbox_store.append(
                        OutboxDraft(event_type=event_type, payload=payload, occurred_on_utc=event.occurred_on_utc),
                        conn,
                    )

        for aggregate in aggregates:
            aggregate.clear_domain_events()
        return result
