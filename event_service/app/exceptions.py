from __future__ import annotations


class EventServiceError(Exception):
    """Base exception for all event-service domain errors."""

    code = "event_service_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnauthenticatedError(EventServiceError):
    """The request carries no caller identity."""

    code = "unauthenticated"


class NotFoundError(EventServiceError):
    """A referenced entity does not exist (or is not visible)."""

    code = "not_found"


class NoActiveHoldError(NotFoundError):
    """The event has no active credit hold to deduct from or release."""

    code = "no_active_hold"


class ForbiddenError(EventServiceError):
    """The caller does not own the resource or lacks the required role."""

    code = "forbidden"


class ConflictError(EventServiceError):
    """A uniqueness rule would be violated (duplicate account, application, refund, hold)."""

    code = "conflict"


class InsufficientCreditsError(EventServiceError):
    """Available credits do not cover the requested hold."""

    code = "insufficient_credits"

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            f"Insufficient credits. Required: {required}, Available: {available}"
        )
        self.required = required
        self.available = available
        self.shortfall = max(0, required - available)


class InvalidStateError(EventServiceError):
    """The entity is not in a state that allows the requested transition."""

    code = "invalid_state"


class HoldExhaustedError(InvalidStateError):
    """Every credit of the hold has already been deducted."""

    code = "hold_exhausted"


class EventFullError(EventServiceError):
    """Approved applications already fill the event's capacity."""

    code = "event_full"


class AgeRestrictedError(EventServiceError):
    """The applicant does not satisfy the event's age range."""

    code = "age_restricted"


class InvalidRequestError(EventServiceError):
    """Input is malformed or internally inconsistent."""

    code = "invalid_request"


class LedgerIntegrityError(EventServiceError):
    """A ledger write would break a balance invariant (e.g. a negative balance)."""

    code = "ledger_integrity"
