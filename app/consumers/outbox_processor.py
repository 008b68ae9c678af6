import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Optional

from app.core.clock import utcnow
from app.core.config import LOG_FORMAT, LOG_LEVEL, OutboxProcessingOptions
from app.core.db import close_db, init_db
from app.core.errors import EventDecodeError
from app.consumers.event_log_consumer import register_event_log_consumers
from app.events.dispatcher import DomainEventDispatcher, EventContext
from app.events.outbox_store import TortoiseOutboxStore
from app.events.serializer import EventSerializer

log = logging.getLogger("outbox_processor")

DEFAULT_POLLING_INTERVAL = 5.0


class FailureKind(str, Enum):
    TRANSIENT = "TRANSIENT" # Subscriber failed, worth retrying
    PERMANENT = "PERMANENT" # Envelope can never be decoded


class DeliveryOutcome(str, Enum):
    DISPATCHED = "DISPATCHED"
    RETRY = "RETRY"
    DEAD_LETTER = "DEAD_LETTER"


@dataclass(frozen=True)
class DeliveryResult:
    failure: Optional[FailureKind] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None


def calculate_backoff(attempt_count: int, options: OutboxProcessingOptions) -> timedelta:
    """Exponential delay (base * 2^(attempt-1)) capped at max_retry_delay; base is at least one second."""
    base_seconds = max(1.0, options.base_retry_delay.total_seconds())
    max_seconds = max(base_seconds, options.max_retry_delay.total_seconds())
    # Bounded exponent keeps the float product finite for any attempt count.
    exponent = min(max(0, attempt_count - 1), 63)
    return timedelta(seconds=min(base_seconds * (2 ** exponent), max_seconds))


def decide_outcome(result: DeliveryResult, attempt_count: int, options: OutboxProcessingOptions) -> DeliveryOutcome:
    """
    Maps a delivery result onto the next envelope state.
    attempt_count is the number of failed attempts including this one.
    """
    if result.succeeded:
        return DeliveryOutcome.DISPATCHED
    if result.failure == FailureKind.PERMANENT:
        return DeliveryOutcome.DEAD_LETTER
    if attempt_count >= max(1, options.max_attempts):
        return DeliveryOutcome.DEAD_LETTER
    return DeliveryOutcome.RETRY


class OutboxEventProcessor:
    """
    Claims due envelopes, decodes them and hands them to the dispatcher.
    Every envelope ends a tick dispatched, rescheduled or dead-lettered; one bad
    envelope never affects the others in the batch.
    """

    def __init__(
        self,
        store: Any,
        serializer: EventSerializer,
        dispatcher: DomainEventDispatcher,
        options: Optional[OutboxProcessingOptions] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.serializer = serializer
        self.dispatcher = dispatcher
        self.options = options or OutboxProcessingOptions()
        self.clock = clock

    async def process_pending(self, batch_size: Optional[int] = None) -> int:
        """Runs one tick. Returns the number of envelopes claimed."""
        now = self.clock()
        size = max(1, batch_size if batch_size is not None else self.options.batch_size)
        messages = await self.store.claim_due(now, size)

        # Processed in claim order: oldest first
        for message in messages:
            result = await self._deliver(message)
            await self._record(message, result, now)

        return len(messages)

    async def _deliver(self, message) -> DeliveryResult:
        try:
            event = self.serializer.deserialize(message.event_type, message.payload)
        except EventDecodeError as e:
            return DeliveryResult(FailureKind.TRANSIENT if e.retryable else FailureKind.PERMANENT, str(e))

        context = EventContext.for_event(event, message_id=message.id, attempt=message.attempt_count + 1)
        try:
            await self.dispatcher.dispatch([event], context)
        except Exception as e:
            return DeliveryResult(FailureKind.TRANSIENT, f"{type(e).__name__}: {e}")

        return DeliveryResult()

    async def _record(self, message, result: DeliveryResult, now: datetime) -> None:
        attempts = message.attempt_count + (0 if result.succeeded else 1)
        outcome = decide_outcome(result, attempts, self.options)

        if outcome == DeliveryOutcome.DISPATCHED:
            await self.store.mark_dispatched(message.id, now)

        elif outcome == DeliveryOutcome.RETRY:
            next_attempt = now + calculate_backoff(attempts, self.options)
            await self.store.mark_retry(message.id, next_attempt, result.error)
            log.warning(
                f"Outbox message {message.id} ({message.event_type}) failed attempt {attempts}; "
                f"retrying at {next_attempt.isoformat()}. Error: {result.error}"
            )

        else:
            await self.store.mark_dead_letter(message.id, now, result.error)
            log.error(
                f"Outbox message {message.id} ({message.event_type}) dead-lettered after {attempts} attempt(s) "
                f"[{result.failure.value}]. Error: {result.error}"
            )


class OutboxProcessorService:
    """
    Recurring background task driving the processor on a fixed interval.
    Stopping lets the running tick finish and then stops claiming.
    """

    def __init__(self, processor: OutboxEventProcessor, options: Optional[OutboxProcessingOptions] = None):
        self.processor = processor
        self.options = options or processor.options
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def polling_interval(self) -> float:
        interval = self.options.polling_interval
        return interval if interval > 0 else DEFAULT_POLLING_INTERVAL

    async def run(self) -> None:
        log.info("--- Outbox Processor Started ---")
        while not self._stop.is_set():
            try:
                await self.processor.process_pending(self.options.batch_size)
            except Exception:
                # A failing tick (e.g. database unavailable) must not kill the loop.
                log.exception("Failed to process outbox messages.")

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.polling_interval)
            except asyncio.TimeoutError:
                pass
        log.info("--- Outbox Processor Stopped ---")

    def start(self) -> asyncio.Task:
        self._stop.clear()
        self._task = asyncio.create_task(self.run(), name="outbox-processor")
        return self._task

    async def stop(self) -> None:
        self._stop.set()
        if self._task is not None:
            await self._task
            self._task = None


def build_outbox_processor(options: Optional[OutboxProcessingOptions] = None) -> OutboxEventProcessor:
    """Wires the database store, the serializer and the logging subscribers together."""
    options = options or OutboxProcessingOptions()
    dispatcher = register_event_log_consumers(DomainEventDispatcher())
    return OutboxEventProcessor(
        store=TortoiseOutboxStore(claim_lease=options.claim_lease),
        serializer=EventSerializer(),
        dispatcher=dispatcher,
        options=options,
    )


async def start_outbox_processor():
    """Main loop for running the processor as its own process."""
    await init_db()
    service = OutboxProcessorService(build_outbox_processor())
    try:
        await service.run()
    finally:
        await close_db()


if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    try:
        asyncio.run(start_outbox_processor())
    except KeyboardInterrupt:
        log.info("Outbox processor stopped.")
