# scripts/seed_data.py
import asyncio
from decimal import Decimal

from app.core.db import init_db, close_db
from app.core.unit_of_work import UnitOfWork
from app.models.mission import MissionMetric
from app.models.organization import Collaborator, Organization, Team, Workspace
from app.services.mission_service import plan_mission, register_metric_checkin


async def seed():
    """Creates a small tenant whose writes leave a trail of envelopes in the outbox."""
    uow = UnitOfWork()

    organization = Organization.build(name="Demo Organization")
    workspace = Workspace.build(organization_id=organization.id, name="Product")
    team = Team.build(organization_id=organization.id, workspace_id=workspace.id, name="Platform")
    collaborator = Collaborator.build(
        organization_id=organization.id, full_name="Demo Collaborator", email="demo@example.com", team_id=team.id
    )
    aggregates = [organization, workspace, team, collaborator]

    async def save_tenant(conn):
        for aggregate in aggregates:
            await aggregate.save(using_db=conn, force_create=True)

    await uow.commit(save_tenant, aggregates)
    print("Organization:", organization.id)

    mission = await plan_mission(organization.id, "Ship the outbox", uow=uow)
    metric = MissionMetric.build(organization.id, mission.id, "Dead letters per week", target_value=Decimal("0"))

    async def save_metric(conn):
        await metric.save(using_db=conn, force_create=True)

    await uow.commit(save_metric, [metric])
    await register_metric_checkin(metric.id, Decimal("3"), collaborator_id=collaborator.id, uow=uow)

    print("Mission:", mission.id, "Metric:", metric.id)
    print("Seed complete; the outbox processor will pick the events up on its next tick.")


async def main():
    await init_db()
    await seed()
    await close_db()

if __name__ == "__main__":
    asyncio.run(main())
