import logging
from fastapi import APIRouter, Depends, Query, Response, status
from uuid import UUID

from app.events.outbox_store import TortoiseOutboxStore
from app.schemas.outbox import DeadLetterFilter, DeadLetterPage, ReprocessDeadLettersResponse
from app.schemas.response import SuccessResponse
from app.services.outbox_admin_service import OutboxAdministrationService

router = APIRouter()
log = logging.getLogger("uvicorn")


def get_outbox_admin_service() -> OutboxAdministrationService:
    return OutboxAdministrationService(TortoiseOutboxStore())


@router.get("/dead-letters", response_model=SuccessResponse)
async def list_dead_letters_endpoint(
    page: int = Query(1),
    page_size: int = Query(20),
    service: OutboxAdministrationService = Depends(get_outbox_admin_service),
):
    """Lists dead-lettered outbox messages, most recently dead-lettered first."""
    result = await service.get_dead_letters(page, page_size)
    if not result.is_success:
        raise result.error

    data = DeadLetterPage(
        items=result.value.items,
        total=result.value.total,
        page=result.value.page,
        page_size=result.value.page_size,
    ).model_dump(mode="json")
    return SuccessResponse(data=data)


@router.post("/dead-letters/reprocess", response_model=SuccessResponse)
async def reprocess_dead_letters_endpoint(
    criteria: DeadLetterFilter,
    service: OutboxAdministrationService = Depends(get_outbox_admin_service),
):
    """Requeues every dead letter matching the filter (up to max_items)."""
    result = await service.reprocess_dead_letters(criteria)
    if not result.is_success:
        raise result.error

    log.info(f"Operator requeued {result.value} dead-lettered outbox message(s).")
    return SuccessResponse(data=ReprocessDeadLettersResponse(reprocessed_count=result.value).model_dump())


@router.post("/dead-letters/{message_id}/reprocess", status_code=status.HTTP_204_NO_CONTENT)
async def reprocess_dead_letter_endpoint(
    message_id: UUID,
    service: OutboxAdministrationService = Depends(get_outbox_admin_service),
):
    """Requeues a single dead-lettered message for redelivery."""
    result = await service.reprocess_dead_letter(message_id)
    if not result.is_success:
        raise result.error
    return Response(status_code=status.HTTP_204_NO_CONTENT)
