from typing import Dict, Iterator, Optional, Type, TypeVar

from app.events.domain_event import DomainEvent

E = TypeVar("E", bound=DomainEvent)


class EventTypeRegistry:
    """Maps logical event names (the class name) to event classes."""

    def __init__(self):
        self._types: Dict[str, Type[DomainEvent]] = {}

    def register(self, event_type: Type[E]) -> Type[E]:
        name = event_type.__name__
        existing = self._types.get(name)
        if existing is not None and existing is not event_type:
            raise ValueError(f"Event name '{name}' is already registered by {existing.__module__}.{existing.__qualname__}")
        self._types[name] = event_type
        return event_type

    def name_of(self, event_type: Type[DomainEvent]) -> Optional[str]:
        name = event_type.__name__
        return name if self._types.get(name) is event_type else None

    def resolve(self, type_name: str) -> Optional[Type[DomainEvent]]:
        """
        Looks up a stored type name. Besides the bare class name this accepts
        the module-qualified and assembly-qualified names older rows were written with.
        """
        candidate = type_name.strip()
        if candidate in self._types:
            return self._types[candidate]

        # "Namespace.Name, Assembly, Version=..." -> "Namespace.Name"
        candidate = candidate.split(",", 1)[0].strip()
        # "pkg.module.Name" -> "Name"
        candidate = candidate.rsplit(".", 1)[-1]
        return self._types.get(candidate)

    def __contains__(self, event_type: object) -> bool:
        return isinstance(event_type, type) and self.name_of(event_type) is not None

    def __iter__(self) -> Iterator[Type[DomainEvent]]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)


# Process-wide registry, filled as app.events.catalog is imported.
event_types = EventTypeRegistry()


def register_event(event_type: Type[E]) -> Type[E]:
    """Class decorator adding an event to the process-wide registry."""
    return event_types.register(event_type)
