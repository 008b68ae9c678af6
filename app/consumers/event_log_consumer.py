import logging
from typing import Dict, Type

from app.events import catalog
from app.events.dispatcher import DomainEventDispatcher, EventContext
from app.events.domain_event import DomainEvent

log = logging.getLogger("event_log_consumer")

# One log line per processed event, keyed by the exact event class.
EVENT_LOG_MESSAGES: Dict[Type[DomainEvent], str] = {
    catalog.OrganizationCreated: "Event OrganizationCreated processed. OrganizationId={organization_id}",
    catalog.OrganizationUpdated: "Event OrganizationUpdated processed. OrganizationId={organization_id}",
    catalog.OrganizationDeleted: "Event OrganizationDeleted processed. OrganizationId={organization_id}",
    catalog.WorkspaceCreated: "Event WorkspaceCreated processed. WorkspaceId={workspace_id} OrganizationId={organization_id}",
    catalog.WorkspaceUpdated: "Event WorkspaceUpdated processed. WorkspaceId={workspace_id} OrganizationId={organization_id}",
    catalog.WorkspaceDeleted: "Event WorkspaceDeleted processed. WorkspaceId={workspace_id} OrganizationId={organization_id}",
    catalog.TeamCreated: "Event TeamCreated processed. TeamId={team_id} OrganizationId={organization_id} WorkspaceId={workspace_id}",
    catalog.TeamUpdated: "Event TeamUpdated processed. TeamId={team_id} OrganizationId={organization_id} WorkspaceId={workspace_id}",
    catalog.TeamDeleted: "Event TeamDeleted processed. TeamId={team_id} OrganizationId={organization_id} WorkspaceId={workspace_id}",
    catalog.CollaboratorCreated: "Event CollaboratorCreated processed. CollaboratorId={collaborator_id} OrganizationId={organization_id}",
    catalog.CollaboratorUpdated: "Event CollaboratorUpdated processed. CollaboratorId={collaborator_id} OrganizationId={organization_id}",
    catalog.CollaboratorDeleted: "Event CollaboratorDeleted processed. CollaboratorId={collaborator_id} OrganizationId={organization_id}",
    catalog.MissionCreated: "Event MissionCreated processed. MissionId={mission_id} OrganizationId={organization_id}",
    catalog.MissionUpdated: "Event MissionUpdated processed. MissionId={mission_id} OrganizationId={organization_id}",
    catalog.MissionDeleted: "Event MissionDeleted processed. MissionId={mission_id} OrganizationId={organization_id}",
    catalog.MissionMetricCreated: "Event MissionMetricCreated processed. MetricId={metric_id} MissionId={mission_id} OrganizationId={organization_id}",
    catalog.MissionMetricUpdated: "Event MissionMetricUpdated processed. MetricId={metric_id} MissionId={mission_id} OrganizationId={organization_id}",
    catalog.MissionMetricDeleted: "Event MissionMetricDeleted processed. MetricId={metric_id} MissionId={mission_id} OrganizationId={organization_id}",
    catalog.MetricCheckinCreated: "Event MetricCheckinCreated processed. CheckinId={checkin_id} MetricId={metric_id} OrganizationId={organization_id} CollaboratorId={collaborator_id}",
    catalog.MetricCheckinUpdated: "Event MetricCheckinUpdated processed. CheckinId={checkin_id} MetricId={metric_id} OrganizationId={organization_id} CollaboratorId={collaborator_id}",
    catalog.MetricCheckinDeleted: "Event MetricCheckinDeleted processed. CheckinId={checkin_id} MetricId={metric_id} OrganizationId={organization_id} CollaboratorId={collaborator_id}",
    catalog.MissionTemplateCreated: "Event MissionTemplateCreated processed. TemplateId={template_id} OrganizationId={organization_id}",
    catalog.MissionTemplateUpdated: "Event MissionTemplateUpdated processed. TemplateId={template_id} OrganizationId={organization_id}",
    catalog.MissionTemplateDeleted: "Event MissionTemplateDeleted processed. TemplateId={template_id} OrganizationId={organization_id}",
}


class EventLogConsumer:
    """Subscriber that writes a single info line describing the event it received."""

    def __init__(self, template: str, logger: logging.Logger = log):
        self.template = template
        self.logger = logger

    async def __call__(self, event: DomainEvent, context: EventContext) -> None:
        self.logger.info(self.template.format(**event.model_dump()) + f" MessageId={context.message_id}")


def register_event_log_consumers(dispatcher: DomainEventDispatcher) -> DomainEventDispatcher:
    """Subscribes a log consumer to every event in the catalog."""
    for event_type, template in EVENT_LOG_MESSAGES.items():
        dispatcher.subscribe(event_type, EventLogConsumer(template))
    return dispatcher
