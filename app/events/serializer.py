from typing import Optional, Tuple

from pydantic import ValidationError

from app.core.errors import PayloadDecodeError, UnknownEventTypeError
from app.events.domain_event import DomainEvent
from app.events.registry import EventTypeRegistry, event_types
from app.events.versioning import append_version, parse_versioned_type, resolve_version


class EventSerializer:
    """
    Converts domain events to the (versioned type name, JSON payload) pair stored
    in the outbox, and back.
    """

    def __init__(self, registry: Optional[EventTypeRegistry] = None):
        self._registry = registry if registry is not None else event_types

    def serialize(self, event: DomainEvent) -> Tuple[str, str]:
        type_name = self._registry.name_of(type(event))
        if type_name is None:
            # An unregistered event could never be decoded by the processor.
            raise UnknownEventTypeError(type(event).__name__)

        return append_version(type_name, resolve_version(event)), event.model_dump_json()

    def deserialize(self, event_type: str, payload: str) -> DomainEvent:
        # The version is informational for now: every version of a name decodes into the same class.
        type_name, _version = parse_versioned_type(event_type)
        event_class = self._registry.resolve(type_name)
        if event_class is None:
            raise UnknownEventTypeError(event_type)

        try:
            return event_class.model_validate_json(payload)
        except ValidationError as e:
            raise PayloadDecodeError(event_type, str(e)) from e
