from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID
import uuid

from tortoise import fields, models

from app.events.catalog import (
    MetricCheckinCreated, MetricCheckinDeleted, MetricCheckinUpdated,
    MissionCreated, MissionDeleted, MissionUpdated,
    MissionMetricCreated, MissionMetricDeleted, MissionMetricUpdated,
    MissionTemplateCreated, MissionTemplateDeleted, MissionTemplateUpdated,
)
from app.models.aggregate import AggregateRoot


class MissionStatus(str, Enum):
    PLANNED = "PLANNED"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class Mission(AggregateRoot, models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    organization_id = fields.UUIDField()
    name = fields.CharField(max_length=200)
    description = fields.TextField(null=True)
    status = fields.CharEnumField(MissionStatus, default=MissionStatus.PLANNED)
    start_date = fields.DateField(null=True)
    end_date = fields.DateField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "missions"
        indexes = [
            ("organization_id",),
            ("organization_id", "status"),
        ]

    @classmethod
    def build(cls, organization_id: UUID, name: str, description: Optional[str] = None,
              start_date: Optional[date] = None, end_date: Optional[date] = None,
              status: MissionStatus = MissionStatus.PLANNED) -> "Mission":
        _check_period(start_date, end_date)
        mission = cls(
            id=uuid.uuid4(),
            organization_id=organization_id,
            name=_required_name(name),
            description=description,
            status=status,
            start_date=start_date,
            end_date=end_date,
        )
        mission.raise_event(MissionCreated(mission_id=mission.id, organization_id=organization_id))
        return mission

    def update(self, name: Optional[str] = None, description: Optional[str] = None,
               status: Optional[MissionStatus] = None) -> None:
        if name is not None:
            self.name = _required_name(name)
        if description is not None:
            self.description = description
        if status is not None:
            self.status = status
        self.raise_event(MissionUpdated(mission_id=self.id, organization_id=self.organization_id))

    def mark_deleted(self) -> None:
        self.raise_event(MissionDeleted(mission_id=self.id, organization_id=self.organization_id))


class MissionMetric(AggregateRoot, models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    organization_id = fields.UUIDField()
    mission_id = fields.UUIDField()
    name = fields.CharField(max_length=200)
    target_value = fields.DecimalField(max_digits=14, decimal_places=2, null=True)
    unit = fields.CharField(max_length=32, null=True)

    class Meta:
        table = "mission_metrics"
        indexes = [("mission_id",), ("organization_id",)]

    @classmethod
    def build(cls, organization_id: UUID, mission_id: UUID, name: str,
              target_value: Optional[Decimal] = None, unit: Optional[str] = None) -> "MissionMetric":
        metric = cls(
            id=uuid.uuid4(),
            organization_id=organization_id,
            mission_id=mission_id,
            name=_required_name(name),
            target_value=target_value,
            unit=unit,
        )
        metric.raise_event(MissionMetricCreated(metric_id=metric.id, mission_id=mission_id, organization_id=organization_id))
        return metric

    def update(self, name: str, target_value: Optional[Decimal] = None, unit: Optional[str] = None) -> None:
        self.name = _required_name(name)
        self.target_value = target_value
        self.unit = unit
        self.raise_event(self._metric_event(MissionMetricUpdated))

    def mark_deleted(self) -> None:
        self.raise_event(self._metric_event(MissionMetricDeleted))

    def register_checkin(self, value: Decimal, collaborator_id: Optional[UUID] = None,
                         note: Optional[str] = None, checkin_date: Optional[date] = None) -> "MetricCheckin":
        """Creates a check-in for this metric and raises MetricCheckinCreated on the metric."""
        checkin = MetricCheckin(
            id=uuid.uuid4(),
            organization_id=self.organization_id,
            metric_id=self.id,
            collaborator_id=collaborator_id,
            value=value,
            note=note,
            checkin_date=checkin_date or date.today(),
        )
        self.raise_event(MetricCheckinCreated(
            checkin_id=checkin.id,
            metric_id=self.id,
            organization_id=self.organization_id,
            collaborator_id=collaborator_id,
        ))
        return checkin

    def correct_checkin(self, checkin: "MetricCheckin", value: Decimal, note: Optional[str] = None) -> None:
        self._own(checkin)
        checkin.value = value
        checkin.note = note
        self.raise_event(MetricCheckinUpdated(
            checkin_id=checkin.id,
            metric_id=self.id,
            organization_id=self.organization_id,
            collaborator_id=checkin.collaborator_id,
        ))

    def remove_checkin(self, checkin: "MetricCheckin") -> None:
        self._own(checkin)
        self.raise_event(MetricCheckinDeleted(
            checkin_id=checkin.id,
            metric_id=self.id,
            organization_id=self.organization_id,
            collaborator_id=checkin.collaborator_id,
        ))

    def _own(self, checkin: "MetricCheckin") -> None:
        if checkin.metric_id != self.id:
            raise ValueError(f"Check-in {checkin.id} does not belong to metric {self.id}.")

    def _metric_event(self, event_class):
        return event_class(metric_id=self.id, mission_id=self.mission_id, organization_id=self.organization_id)


class MetricCheckin(models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    organization_id = fields.UUIDField()
    metric_id = fields.UUIDField()
    collaborator_id = fields.UUIDField(null=True)
    value = fields.DecimalField(max_digits=14, decimal_places=2)
    note = fields.TextField(null=True)
    checkin_date = fields.DateField()
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "metric_checkins"
        indexes = [("metric_id", "checkin_date")]


class MissionTemplate(AggregateRoot, models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    organization_id = fields.UUIDField()
    name = fields.CharField(max_length=200)
    description = fields.TextField(null=True)

    class Meta:
        table = "mission_templates"

    @classmethod
    def build(cls, organization_id: UUID, name: str, description: Optional[str] = None) -> "MissionTemplate":
        template = cls(id=uuid.uuid4(), organization_id=organization_id, name=_required_name(name), description=description)
        template.raise_event(MissionTemplateCreated(template_id=template.id, organization_id=organization_id))
        return template

    def update(self, name: str, description: Optional[str] = None) -> None:
        self.name = _required_name(name)
        self.description = description
        self.raise_event(MissionTemplateUpdated(template_id=self.id, organization_id=self.organization_id))

    def mark_deleted(self) -> None:
        self.raise_event(MissionTemplateDeleted(template_id=self.id, organization_id=self.organization_id))


def _required_name(name: str) -> str:
    if not name or not name.strip():
        raise ValueError("Name is required.")
    return name.strip()


def _check_period(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and end_date < start_date:
        raise ValueError("End date must be on or after the start date.")
