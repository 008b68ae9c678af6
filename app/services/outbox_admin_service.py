import logging
from datetime import datetime
from typing import Any, Callable
from uuid import UUID

from app.core.clock import utcnow
from app.core.errors import InvalidRequestError, NotFoundError
from app.schemas.outbox import DeadLetterFilter, OutboxDeadLetter
from app.schemas.response import PagedResult, ServiceResult

log = logging.getLogger("outbox_admin")

MAX_PAGE_SIZE = 100
MAX_REPROCESS_ITEMS = 500


class OutboxAdministrationService:
    """
    Operator commands over dead-lettered envelopes.
    Every method returns a ServiceResult; nothing raises across this boundary
    for expected failures (bad paging, unknown id, invalid filter).
    """

    def __init__(self, store: Any, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock

    async def get_dead_letters(self, page: int, page_size: int) -> ServiceResult[PagedResult[OutboxDeadLetter]]:
        if page < 1:
            return ServiceResult.failure(InvalidRequestError("Parameter 'page' must be greater than or equal to 1."))
        if page_size < 1 or page_size > MAX_PAGE_SIZE:
            return ServiceResult.failure(InvalidRequestError(f"Parameter 'page_size' must be between 1 and {MAX_PAGE_SIZE}."))

        result = await self.store.list_dead_letters(page, page_size)
        items = [OutboxDeadLetter.model_validate(message) for message in result.items]
        return ServiceResult.success(PagedResult(items=items, total=result.total, page=page, page_size=page_size))

    async def reprocess_dead_letter(self, message_id: UUID) -> ServiceResult[None]:
        message = await self.store.get(message_id)
        if message is None:
            return ServiceResult.failure(NotFoundError("Outbox message not found."))
        if message.dead_lettered_on_utc is None:
            return ServiceResult.failure(NotFoundError("Outbox message is not dead-lettered."))

        # Conditional on the row still being dead-lettered, so a concurrent requeue is reported, not repeated.
        if await self.store.requeue(message_id, self.clock()) == 0:
            return ServiceResult.failure(NotFoundError("Outbox message is not dead-lettered."))

        log.info(f"Dead-lettered outbox message {message_id} requeued.")
        return ServiceResult.success()

    async def reprocess_dead_letters(self, criteria: DeadLetterFilter) -> ServiceResult[int]:
        if criteria.max_items < 1 or criteria.max_items > MAX_REPROCESS_ITEMS:
            return ServiceResult.failure(InvalidRequestError(f"Parameter 'max_items' must be between 1 and {MAX_REPROCESS_ITEMS}."))
        if (criteria.dead_lettered_from is not None and criteria.dead_lettered_to is not None
                and criteria.dead_lettered_from > criteria.dead_lettered_to):
            return ServiceResult.failure(InvalidRequestError("The dead-letter period is invalid."))

        count = await self.store.requeue_matching(criteria, self.clock())
        log.info(f"{count} dead-lettered outbox message(s) requeued (filter: {criteria.model_dump(exclude_none=True)}).")
        return ServiceResult.success(count)
