from fastapi import status


# ----------- Event decoding -----------

class EventDecodeError(Exception):
    """A stored envelope cannot be turned back into a domain event.

    Decode failures are permanent: retrying the same bytes never succeeds,
    so the processor dead-letters them right away.
    """
    retryable = False

    def __init__(self, event_type: str, message: str):
        super().__init__(message)
        self.event_type = event_type


class UnknownEventTypeError(EventDecodeError):
    def __init__(self, event_type: str):
        super().__init__(event_type, f"Unknown domain event type: {event_type}")


class PayloadDecodeError(EventDecodeError):
    def __init__(self, event_type: str, reason: str):
        super().__init__(event_type, f"Could not decode payload for {event_type}: {reason}")
        self.reason = reason


# ----------- Outbox store -----------

class OutboxTransactionRequiredError(RuntimeError):
    """Raised when an envelope is appended outside of a database transaction."""

    def __init__(self):
        super().__init__("Outbox envelopes can only be appended inside an active transaction.")


# ----------- Service results -----------

class ServiceError(Exception):
    """Base failure carried by a ServiceResult. Maps onto an HTTP status."""
    code = "service_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class InvalidRequestError(ServiceError):
    code = "invalid_request"
    status_code = status.HTTP_400_BAD_REQUEST
