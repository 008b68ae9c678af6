from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Optional

from app.core.clock import utcnow
from app.core.config import OutboxHealthCheckOptions


class HealthStatus(str, Enum):
    HEALTHY = "Healthy"
    DEGRADED = "Degraded"
    UNHEALTHY = "Unhealthy"


# Worst status wins when checks are combined.
_SEVERITY = {HealthStatus.HEALTHY: 0, HealthStatus.DEGRADED: 1, HealthStatus.UNHEALTHY: 2}


def worst_status(*statuses: HealthStatus) -> HealthStatus:
    return max(statuses, key=_SEVERITY.__getitem__, default=HealthStatus.HEALTHY)


@dataclass(frozen=True)
class HealthCheckResult:
    status: HealthStatus
    description: str
    data: Dict[str, Any] = field(default_factory=dict)


def classify_outbox_health(
    dead_letter_count: int,
    oldest_pending_age: timedelta,
    options: OutboxHealthCheckOptions,
) -> HealthStatus:
    """Dead letters over the limit dominate; a stale pending envelope only degrades."""
    if dead_letter_count > options.max_dead_letters:
        return HealthStatus.UNHEALTHY
    if oldest_pending_age > options.max_oldest_pending_age:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


_DESCRIPTIONS = {
    HealthStatus.HEALTHY: "Outbox is healthy.",
    HealthStatus.DEGRADED: "Outbox has pending messages older than the configured maximum age.",
    HealthStatus.UNHEALTHY: "Outbox has more dead-lettered messages than the configured limit.",
}


class OutboxHealthCheck:
    """Read-only diagnostic over the outbox: dead-letter count and oldest pending age."""

    def __init__(self, store: Any, options: Optional[OutboxHealthCheckOptions] = None,
                 clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.options = options or OutboxHealthCheckOptions()
        self.clock = clock

    async def check_health(self, now: Optional[datetime] = None) -> HealthCheckResult:
        now = now or self.clock()
        dead_letters = await self.store.count_dead_letters()
        oldest_pending = await self.store.oldest_pending_occurred_on()
        oldest_pending_age = max(now - oldest_pending, timedelta(0)) if oldest_pending else timedelta(0)

        status = classify_outbox_health(dead_letters, oldest_pending_age, self.options)
        data = {
            "dead_letters": dead_letters,
            "oldest_pending_age_seconds": round(oldest_pending_age.total_seconds(), 2),
            "max_dead_letters": self.options.max_dead_letters,
            "max_oldest_pending_age_seconds": round(self.options.max_oldest_pending_age.total_seconds(), 2),
        }
        return HealthCheckResult(status=status, description=_DESCRIPTIONS[status], data=data)
