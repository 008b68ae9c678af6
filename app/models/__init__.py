# app/models/__init__.py
from .aggregate import AggregateRoot
from .mission import MetricCheckin, Mission, MissionMetric, MissionStatus, MissionTemplate
from .organization import Collaborator, Organization, Team, Workspace
from .outbox import OutboxMessage, OutboxStatus

# Export all models
__all__ = [
    "AggregateRoot",
    "Collaborator",
    "MetricCheckin",
    "Mission",
    "MissionMetric",
    "MissionStatus",
    "MissionTemplate",
    "Organization",
    "OutboxMessage",
    "OutboxStatus",
    "Team",
    "Workspace",
]
