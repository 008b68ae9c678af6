import pytest
from uuid import uuid4

from app.core.unit_of_work import UnitOfWork
from app.events.catalog import MissionCreated
from app.events.serializer import EventSerializer
from app.models.mission import Mission
from app.models.outbox import OutboxMessage


@pytest.mark.asyncio
async def test_commit_writes_state_and_envelope_together(db):
    mission = Mission.build(organization_id=uuid4(), name="Grow revenue")
    event = mission.domain_events[0]

    async def save(conn):
        await mission.save(using_db=conn, force_create=True)
        return mission.id

    result = await UnitOfWork().commit(save, [mission])

    assert result == mission.id
    assert await Mission.filter(id=mission.id).exists()
    envelope = await OutboxMessage.get(event_type="MissionCreated|v1")
    assert envelope.occurred_on_utc == event.occurred_on_utc
    assert envelope.next_attempt_on_utc == event.occurred_on_utc
    assert EventSerializer().deserialize(envelope.event_type, envelope.payload) == event
    assert mission.domain_events == ()


@pytest.mark.asyncio
async def test_failed_save_writes_nothing_and_keeps_events(db):
    mission = Mission.build(organization_id=uuid4(), name="Grow revenue")

    async def save(conn):
        await mission.save(using_db=conn, force_create=True)
        raise RuntimeError("constraint violated")

    with pytest.raises(RuntimeError):
        await UnitOfWork().commit(save, [mission])

    assert not await Mission.filter(id=mission.id).exists()
    assert await OutboxMessage.all().count() == 0
    assert [type(e) for e in mission.domain_events] == [MissionCreated]


@pytest.mark.asyncio
async def test_one_envelope_per_event_across_aggregates(db):
    organization_id = uuid4()
    mission = Mission.build(organization_id=organization_id, name="Ship v2")
    mission.update(description="Second version")
    other = Mission.build(organization_id=organization_id, name="Hire")

    async def save(conn):
        await mission.save(using_db=conn, force_create=True)
        await other.save(using_db=conn, force_create=True)

    await UnitOfWork().commit(save, [mission, other])

    types = sorted(await OutboxMessage.all().values_list("event_type", flat=True))
    assert types == ["MissionCreated|v1", "MissionCreated|v1", "MissionUpdated|v1"]
