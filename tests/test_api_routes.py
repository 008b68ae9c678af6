import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient
from uuid import uuid4

from app.api.v1.outbox import get_outbox_admin_service
from app.main import app
from app.models.outbox import OutboxStatus
from app.services.outbox_admin_service import OutboxAdministrationService
from app.testing.testing_mocks import InMemoryOutboxStore

NOW = datetime(2026, 2, 6, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def outbox():
    return InMemoryOutboxStore()


@pytest.fixture
def client(outbox):
    app.dependency_overrides[get_outbox_admin_service] = lambda: OutboxAdministrationService(outbox, clock=lambda: NOW)
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestDeadLetterRoutes:
    def test_list_dead_letters(self, client, outbox):
        """Test dead letters are listed newest first inside the success envelope"""
        older = outbox.add_dead_letter("MissionCreated|v1", NOW - timedelta(hours=2), NOW - timedelta(minutes=30))
        newer = outbox.add_dead_letter("TeamCreated|v1", NOW - timedelta(hours=1), NOW - timedelta(minutes=5))

        response = client.get("/api/v1/outbox/dead-letters", params={"page": 1, "page_size": 10})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["total"] == 2
        assert [item["id"] for item in body["data"]["items"]] == [str(newer.id), str(older.id)]
        assert body["data"]["items"][0]["error"] == "boom"

    def test_list_dead_letters_invalid_paging(self, client):
        """Test out of range paging returns 400"""
        response = client.get("/api/v1/outbox/dead-letters", params={"page": 0})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_request"

    def test_reprocess_single(self, client, outbox):
        """Test requeueing one dead letter returns 204"""
        record = outbox.add_dead_letter("MissionCreated|v1", NOW - timedelta(hours=1), NOW - timedelta(minutes=5))

        response = client.post(f"/api/v1/outbox/dead-letters/{record.id}/reprocess")

        assert response.status_code == 204
        assert record.status == OutboxStatus.PENDING
        assert record.next_attempt_on_utc == NOW

    def test_reprocess_single_not_found(self, client):
        """Test unknown message id returns 404"""
        response = client.post(f"/api/v1/outbox/dead-letters/{uuid4()}/reprocess")

        assert response.status_code == 404
        assert response.json()["success"] is False
        assert response.json()["error"]["code"] == "not_found"

    def test_reprocess_bulk(self, client, outbox):
        """Test bulk requeue reports how many messages moved"""
        outbox.add_dead_letter("MissionCreated|v1", NOW - timedelta(hours=1), NOW - timedelta(minutes=20))
        outbox.add_dead_letter("MissionUpdated|v1", NOW - timedelta(hours=1), NOW - timedelta(minutes=10))
        outbox.add_dead_letter("TeamCreated|v1", NOW - timedelta(hours=1), NOW - timedelta(minutes=10))

        response = client.post("/api/v1/outbox/dead-letters/reprocess", json={"event_type": "Mission", "max_items": 10})

        assert response.status_code == 200
        assert response.json()["data"]["reprocessed_count"] == 2

    def test_reprocess_bulk_invalid_max_items(self, client):
        """Test max_items above the limit returns 400"""
        response = client.post("/api/v1/outbox/dead-letters/reprocess", json={"max_items": 1000})
        assert response.status_code == 400

    def test_reprocess_bulk_malformed_body(self, client):
        """Test a body that is not a filter returns 422"""
        response = client.post("/api/v1/outbox/dead-letters/reprocess", json={"dead_lettered_from": "yesterday"})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "validation_error"
