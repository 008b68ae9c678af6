import pytest
from uuid import UUID, uuid4

from app.events.domain_event import DomainEvent, VersionedDomainEvent, event_version
from app.events.versioning import append_version, parse_versioned_type, resolve_version


class PlainEvent(DomainEvent):
    id: UUID


@event_version(3)
class AnnotatedEvent(DomainEvent):
    id: UUID


@event_version(7)
class SelfVersionedEvent(VersionedDomainEvent):
    id: UUID
    version: int = 3


class UnannotatedChildEvent(AnnotatedEvent):
    pass


@event_version(0)
class ZeroAnnotatedEvent(DomainEvent):
    id: UUID


class TestResolveVersion:
    def test_instance_version_wins_over_annotation(self):
        assert resolve_version(SelfVersionedEvent(id=uuid4())) == 3

    def test_annotation_used_without_instance_version(self):
        assert resolve_version(AnnotatedEvent(id=uuid4())) == 3
        assert resolve_version(AnnotatedEvent) == 3

    def test_defaults_to_one(self):
        assert resolve_version(PlainEvent(id=uuid4())) == 1
        assert resolve_version(PlainEvent) == 1

    def test_versions_below_one_are_clamped(self):
        assert resolve_version(SelfVersionedEvent(id=uuid4(), version=0)) == 1
        assert resolve_version(ZeroAnnotatedEvent) == 1

    def test_annotation_is_not_inherited(self):
        assert resolve_version(UnannotatedChildEvent(id=uuid4())) == 1
        assert resolve_version(UnannotatedChildEvent) == 1

    def test_type_lookup_ignores_instance_only_version(self):
        # Without an instance only the annotation is visible.
        assert resolve_version(SelfVersionedEvent) == 7


class TestVersionedTypeNames:
    @pytest.mark.parametrize("version", [1, 2, 3, 42])
    def test_append_then_parse_returns_name_and_version(self, version):
        assert parse_versioned_type(append_version("MissionCreated", version)) == ("MissionCreated", version)

    def test_append_clamps_version(self):
        assert append_version("MissionCreated", 0) == "MissionCreated|v1"

    def test_legacy_name_without_separator(self):
        assert parse_versioned_type("SomeEvent") == ("SomeEvent", 1)

    def test_splits_on_last_separator(self):
        assert parse_versioned_type("Odd|vName|v4") == ("Odd|vName", 4)

    @pytest.mark.parametrize("raw", ["SomeEvent|vabc", "SomeEvent|v0", "SomeEvent|v-2", "SomeEvent|v"])
    def test_bad_suffix_falls_back_to_original(self, raw):
        assert parse_versioned_type(raw) == (raw, 1)
