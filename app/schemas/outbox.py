from datetime import datetime
from typing import List, Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field


class OutboxDeadLetter(BaseModel):
    """Operator view of a dead-lettered envelope."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    occurred_on_utc: datetime
    event_type: str
    attempt_count: int
    dead_lettered_on_utc: Optional[datetime] = None
    error: Optional[str] = None


class DeadLetterPage(BaseModel):
    items: List[OutboxDeadLetter]
    total: int
    page: int
    page_size: int


class DeadLetterFilter(BaseModel):
    """Selects dead letters for a bulk requeue."""
    event_type: Optional[str] = Field(None, description="Substring of the stored event type name.")
    dead_lettered_from: Optional[datetime] = Field(None, description="Only envelopes dead-lettered at or after this instant.")
    dead_lettered_to: Optional[datetime] = Field(None, description="Only envelopes dead-lettered at or before this instant.")
    max_items: int = Field(100, description="Upper bound on envelopes requeued by one request (1-500).")


class ReprocessDeadLettersResponse(BaseModel):
    reprocessed_count: int
