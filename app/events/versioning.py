from typing import Tuple, Type, Union

from app.events.domain_event import DomainEvent, VersionedDomainEvent

DEFAULT_VERSION = 1
VERSION_SEPARATOR = "|v"


def resolve_version(event: Union[DomainEvent, Type[DomainEvent]]) -> int:
    """
    Schema version of an event instance or type, always >= 1.

    An instance-level version wins over the type's @event_version annotation,
    which in turn wins over the default.
    """
    if isinstance(event, type):
        event_type, instance = event, None
    else:
        event_type, instance = type(event), event

    if isinstance(instance, VersionedDomainEvent):
        return max(instance.version, DEFAULT_VERSION)

    # Only the type's own annotation counts; subclasses do not inherit a schema version.
    declared = event_type.__dict__.get("__event_version__")
    if declared is not None:
        return max(int(declared), DEFAULT_VERSION)

    return DEFAULT_VERSION


def append_version(type_name: str, version: int) -> str:
    return f"{type_name}{VERSION_SEPARATOR}{max(version, DEFAULT_VERSION)}"


def parse_versioned_type(versioned_type_name: str) -> Tuple[str, int]:
    """
    Splits "Name|vN" on the last separator.
    Legacy names without a separator, or with a bad suffix, come back whole with version 1.
    """
    marker = versioned_type_name.rfind(VERSION_SEPARATOR)
    if marker < 0:
        return versioned_type_name, DEFAULT_VERSION

    raw_version = versioned_type_name[marker + len(VERSION_SEPARATOR):]
    if not (raw_version.isascii() and raw_version.isdigit()) or int(raw_version) <= 0:
        return versioned_type_name, DEFAULT_VERSION

    return versioned_type_name[:marker], int(raw_version)
