from enum import Enum
import uuid

from tortoise import fields, models


class OutboxStatus(str, Enum):
    PENDING = "PENDING"            # Waiting for (re)delivery at next_attempt_on_utc
    DISPATCHED = "DISPATCHED"      # Delivered to every subscriber, kept for audit
    DEAD_LETTERED = "DEAD_LETTERED" # Gave up; waits for an operator to requeue it


class OutboxMessage(models.Model):
    """
    The Outbox table stores domain events atomically with the aggregate's state change.
    This is the core of the Transactional Outbox Pattern.
    """
    id = fields.UUIDField(primary_key=True, default=uuid.uuid4)
    event_type = fields.CharField(max_length=1000) # Versioned type name, e.g. 'MissionCreated|v1'
    payload = fields.TextField() # JSON body of the event
    occurred_on_utc = fields.DatetimeField()
    next_attempt_on_utc = fields.DatetimeField(null=True) # Set while pending, null once terminal
    processed_on_utc = fields.DatetimeField(null=True)
    dead_lettered_on_utc = fields.DatetimeField(null=True)
    attempt_count = fields.IntField(default=0) # Failed delivery attempts so far
    error = fields.TextField(null=True) # Last failure message

    class Meta:
        table = "outbox_messages"
        indexes = [
            ("next_attempt_on_utc", "occurred_on_utc"), # Claiming due envelopes oldest-first
            ("processed_on_utc", "dead_lettered_on_utc"), # Pending / dead-letter scans
            ("dead_lettered_on_utc",),                    # Dead-letter listing
        ]

    @property
    def status(self) -> OutboxStatus:
        if self.dead_lettered_on_utc is not None:
            return OutboxStatus.DEAD_LETTERED
        if self.processed_on_utc is not None:
            return OutboxStatus.DISPATCHED
        return OutboxStatus.PENDING
