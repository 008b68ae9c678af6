from typing import Optional
from uuid import UUID
import uuid

from tortoise import fields, models

from app.events.catalog import (
    CollaboratorCreated, CollaboratorDeleted, CollaboratorUpdated,
    OrganizationCreated, OrganizationDeleted, OrganizationUpdated,
    TeamCreated, TeamDeleted, TeamUpdated,
    WorkspaceCreated, WorkspaceDeleted, WorkspaceUpdated,
)
from app.models.aggregate import AggregateRoot


class Organization(AggregateRoot, models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    name = fields.CharField(max_length=200)
    owner_id = fields.UUIDField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "organizations"

    @classmethod
    def build(cls, name: str, owner_id: Optional[UUID] = None) -> "Organization":
        organization = cls(id=uuid.uuid4(), name=name.strip(), owner_id=owner_id)
        organization.raise_event(OrganizationCreated(organization_id=organization.id))
        return organization

    def update(self, name: str, owner_id: Optional[UUID] = None) -> None:
        self.name = name.strip()
        self.owner_id = owner_id
        self.raise_event(OrganizationUpdated(organization_id=self.id))

    def mark_deleted(self) -> None:
        self.raise_event(OrganizationDeleted(organization_id=self.id))


class Workspace(AggregateRoot, models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    organization_id = fields.UUIDField()
    name = fields.CharField(max_length=200)
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "workspaces"
        indexes = [("organization_id",)]

    @classmethod
    def build(cls, organization_id: UUID, name: str) -> "Workspace":
        workspace = cls(id=uuid.uuid4(), organization_id=organization_id, name=name.strip())
        workspace.raise_event(WorkspaceCreated(workspace_id=workspace.id, organization_id=organization_id))
        return workspace

    def rename(self, name: str) -> None:
        self.name = name.strip()
        self.raise_event(WorkspaceUpdated(workspace_id=self.id, organization_id=self.organization_id))

    def mark_deleted(self) -> None:
        self.raise_event(WorkspaceDeleted(workspace_id=self.id, organization_id=self.organization_id))


class Team(AggregateRoot, models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    organization_id = fields.UUIDField()
    workspace_id = fields.UUIDField()
    name = fields.CharField(max_length=200)
    leader_id = fields.UUIDField(null=True)
    parent_team_id = fields.UUIDField(null=True)

    class Meta:
        table = "teams"
        indexes = [("organization_id",), ("workspace_id",)]

    @classmethod
    def build(cls, organization_id: UUID, workspace_id: UUID, name: str,
              leader_id: Optional[UUID] = None, parent_team_id: Optional[UUID] = None) -> "Team":
        team = cls(
            id=uuid.uuid4(),
            organization_id=organization_id,
            workspace_id=workspace_id,
            name=name.strip(),
            leader_id=leader_id,
            parent_team_id=parent_team_id,
        )
        team.raise_event(TeamCreated(team_id=team.id, organization_id=organization_id, workspace_id=workspace_id))
        return team

    def update(self, name: str, leader_id: Optional[UUID] = None, parent_team_id: Optional[UUID] = None) -> None:
        if parent_team_id == self.id:
            raise ValueError("A team cannot be its own parent.")
        self.name = name.strip()
        self.leader_id = leader_id
        self.parent_team_id = parent_team_id
        self.raise_event(TeamUpdated(team_id=self.id, organization_id=self.organization_id, workspace_id=self.workspace_id))

    def mark_deleted(self) -> None:
        self.raise_event(TeamDeleted(team_id=self.id, organization_id=self.organization_id, workspace_id=self.workspace_id))


class Collaborator(AggregateRoot, models.Model):
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    organization_id = fields.UUIDField()
    full_name = fields.CharField(max_length=200)
    email = fields.CharField(max_length=320)
    team_id = fields.UUIDField(null=True)

    class Meta:
        table = "collaborators"
        unique_together = (("organization_id", "email"),)

    @classmethod
    def build(cls, organization_id: UUID, full_name: str, email: str, team_id: Optional[UUID] = None) -> "Collaborator":
        collaborator = cls(
            id=uuid.uuid4(),
            organization_id=organization_id,
            full_name=full_name.strip(),
            email=email.strip().lower(),
            team_id=team_id,
        )
        collaborator.raise_event(CollaboratorCreated(collaborator_id=collaborator.id, organization_id=organization_id))
        return collaborator

    def update(self, full_name: str, email: str, team_id: Optional[UUID] = None) -> None:
        self.full_name = full_name.strip()
        self.email = email.strip().lower()
        self.team_id = team_id
        self.raise_event(CollaboratorUpdated(collaborator_id=self.id, organization_id=self.organization_id))

    def mark_deleted(self) -> None:
        self.raise_event(CollaboratorDeleted(collaborator_id=self.id, organization_id=self.organization_id))
