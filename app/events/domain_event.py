from datetime import datetime
from typing import Callable, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from app.core.clock import utcnow

E = TypeVar("E", bound="DomainEvent")


class DomainEvent(BaseModel):
    """
    An immutable fact raised by an aggregate root when its state changes.
    Concrete events add their own aggregate-scoped identifiers
    (e.g. mission_id, organization_id).
    """
    model_config = ConfigDict(frozen=True)

    occurred_on_utc: datetime = Field(default_factory=utcnow)


class VersionedDomainEvent(DomainEvent):
    """An event that states its own schema version on the instance."""
    version: int = 1


def event_version(version: int) -> Callable[[Type[E]], Type[E]]:
    """Class decorator declaring the schema version of an event type."""
    def decorator(cls: Type[E]) -> Type[E]:
        cls.__event_version__ = version
        return cls
    return decorator
