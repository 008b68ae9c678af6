"""
Domain events raised by the aggregates of the back office.

Importing this module registers every event with the process-wide registry,
which is what the outbox serializer uses to turn stored rows back into events.
"""
from typing import Optional
from uuid import UUID

from app.events.domain_event import DomainEvent
from app.events.registry import register_event


# --- Organizations ---

@register_event
class OrganizationCreated(DomainEvent):
    organization_id: UUID


@register_event
class OrganizationUpdated(DomainEvent):
    organization_id: UUID


@register_event
class OrganizationDeleted(DomainEvent):
    organization_id: UUID


# --- Workspaces ---

@register_event
class WorkspaceCreated(DomainEvent):
    workspace_id: UUID
    organization_id: UUID


@register_event
class WorkspaceUpdated(DomainEvent):
    workspace_id: UUID
    organization_id: UUID


@register_event
class WorkspaceDeleted(DomainEvent):
    workspace_id: UUID
    organization_id: UUID


# --- Teams ---

@register_event
class TeamCreated(DomainEvent):
    team_id: UUID
    organization_id: UUID
    workspace_id: UUID


@register_event
class TeamUpdated(DomainEvent):
    team_id: UUID
    organization_id: UUID
    workspace_id: UUID


@register_event
class TeamDeleted(DomainEvent):
    team_id: UUID
    organization_id: UUID
    workspace_id: UUID


# --- Collaborators ---

@register_event
class CollaboratorCreated(DomainEvent):
    collaborator_id: UUID
    organization_id: UUID


@register_event
class CollaboratorUpdated(DomainEvent):
    collaborator_id: UUID
    organization_id: UUID


@register_event
class CollaboratorDeleted(DomainEvent):
    collaborator_id: UUID
    organization_id: UUID


# --- Missions ---

@register_event
class MissionCreated(DomainEvent):
    mission_id: UUID
    organization_id: UUID


@register_event
class MissionUpdated(DomainEvent):
    mission_id: UUID
    organization_id: UUID


@register_event
class MissionDeleted(DomainEvent):
    mission_id: UUID
    organization_id: UUID


# --- Mission metrics ---

@register_event
class MissionMetricCreated(DomainEvent):
    metric_id: UUID
    mission_id: UUID
    organization_id: UUID


@register_event
class MissionMetricUpdated(DomainEvent):
    metric_id: UUID
    mission_id: UUID
    organization_id: UUID


@register_event
class MissionMetricDeleted(DomainEvent):
    metric_id: UUID
    mission_id: UUID
    organization_id: UUID


# --- Metric check-ins ---

@register_event
class MetricCheckinCreated(DomainEvent):
    checkin_id: UUID
    metric_id: UUID
    organization_id: UUID
    collaborator_id: Optional[UUID] = None


@register_event
class MetricCheckinUpdated(DomainEvent):
    checkin_id: UUID
    metric_id: UUID
    organization_id: UUID
    collaborator_id: Optional[UUID] = None


@register_event
class MetricCheckinDeleted(DomainEvent):
    checkin_id: UUID
    metric_id: UUID
    organization_id: UUID
    collaborator_id: Optional[UUID] = None


# --- Mission templates ---

@register_event
class MissionTemplateCreated(DomainEvent):
    template_id: UUID
    organization_id: UUID


@register_event
class MissionTemplateUpdated(DomainEvent):
    template_id: UUID
    organization_id: UUID


@register_event
class MissionTemplateDeleted(DomainEvent):
    template_id: UUID
    organization_id: UUID
