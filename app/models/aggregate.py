from typing import List, Tuple

from app.events.domain_event import DomainEvent


class AggregateRoot:
    """
    Mixin for models that raise domain events.

    Events pile up in a private list until the unit of work has written them to
    the outbox; only then are they cleared.
    """

    def _pending_events(self) -> List[DomainEvent]:
        return self.__dict__.setdefault("_domain_events", [])

    @property
    def domain_events(self) -> Tuple[DomainEvent, ...]:
        return tuple(self._pending_events())

    def raise_event(self, event: DomainEvent) -> None:
        self._pending_events().append(event)

    def clear_domain_events(self) -> None:
        self._pending_events().clear()
