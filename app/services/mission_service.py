from decimal import Decimal
from typing import Optional
from uuid import UUID

from app.core.unit_of_work import UnitOfWork
from app.models.mission import MetricCheckin, Mission, MissionMetric, MissionStatus


async def plan_mission(organization_id: UUID, name: str, description: Optional[str] = None,
                       uow: Optional[UnitOfWork] = None) -> Mission:
    """Creates a mission. MissionCreated is written to the outbox in the same transaction."""
    uow = uow or UnitOfWork()
    mission = Mission.build(organization_id=organization_id, name=name, description=description)

    async def save(conn):
        await mission.save(using_db=conn, force_create=True)

    await uow.commit(save, [mission])
    return mission


async def update_mission(mission_id: UUID, name: Optional[str] = None, description: Optional[str] = None,
                         status: Optional[MissionStatus] = None, uow: Optional[UnitOfWork] = None) -> Mission:
    uow = uow or UnitOfWork()
    mission = await Mission.get_or_none(id=mission_id)
    if not mission:
        raise ValueError("Mission not found")

    mission.update(name=name, description=description, status=status)

    async def save(conn):
        await mission.save(using_db=conn)

    await uow.commit(save, [mission])
    return mission


async def delete_mission(mission_id: UUID, uow: Optional[UnitOfWork] = None) -> None:
    """Deletes a mission together with its metrics and their check-ins."""
    uow = uow or UnitOfWork()
    mission = await Mission.get_or_none(id=mission_id)
    if not mission:
        raise ValueError("Mission not found")

    mission.mark_deleted()

    async def save(conn):
        metric_ids = await MissionMetric.filter(mission_id=mission.id).using_db(conn).values_list("id", flat=True)
        if metric_ids:
            await MetricCheckin.filter(metric_id__in=list(metric_ids)).using_db(conn).delete()
            await MissionMetric.filter(mission_id=mission.id).using_db(conn).delete()
        await mission.delete(using_db=conn)

    await uow.commit(save, [mission])


async def register_metric_checkin(metric_id: UUID, value: Decimal, collaborator_id: Optional[UUID] = None,
                                  note: Optional[str] = None, uow: Optional[UnitOfWork] = None) -> MetricCheckin:
    uow = uow or UnitOfWork()
    metric = await MissionMetric.get_or_none(id=metric_id)
    if not metric:
        raise ValueError("Metric not found")

    checkin = metric.register_checkin(value=value, collaborator_id=collaborator_id, note=note)

    async def save(conn):
        await checkin.save(using_db=conn, force_create=True)

    await uow.commit(save, [metric])
    return checkin
