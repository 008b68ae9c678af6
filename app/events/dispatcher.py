import inspect
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Type, Union
from uuid import UUID

from app.events.domain_event import DomainEvent


@dataclass(frozen=True)
class EventContext:
    """
    Delivery metadata handed to every subscriber alongside the event.
    Passed explicitly down the processor -> dispatcher -> subscriber chain.
    """
    message_id: Optional[UUID] = None
    organization_id: Optional[UUID] = None
    attempt: int = 1
    occurred_on_utc: Optional[datetime] = None

    @classmethod
    def for_event(cls, event: DomainEvent, message_id: Optional[UUID] = None, attempt: int = 1) -> "EventContext":
        return cls(
            message_id=message_id,
            organization_id=getattr(event, "organization_id", None),
            attempt=attempt,
            occurred_on_utc=event.occurred_on_utc,
        )


Subscriber = Callable[[Any, EventContext], Union[Awaitable[None], None]]


class DomainEventDispatcher:
    """
    In-process fan-out of decoded events to their subscribers.

    Subscribers are matched on the exact event class (no inheritance) and run one
    after another in registration order. The first failure propagates and stops
    the rest of the batch.
    """

    def __init__(self):
        self._subscribers: Dict[Type[DomainEvent], List[Subscriber]] = {}

    def subscribe(self, event_type: Type[DomainEvent], subscriber: Subscriber) -> None:
        self._subscribers.setdefault(event_type, []).append(subscriber)

    def subscribers_for(self, event_type: Type[DomainEvent]) -> List[Subscriber]:
        return list(self._subscribers.get(event_type, ()))

    async def dispatch(self, events: Sequence[DomainEvent], context: Optional[EventContext] = None) -> None:
        for event in events:
            event_context = context if context is not None else EventContext.for_event(event)
            for subscriber in self.subscribers_for(type(event)):
                result = subscriber(event, event_context)
                if inspect.isawaitable(result):
                    await result
