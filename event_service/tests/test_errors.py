from __future__ import annotations

import pytest

from event_service.app.api.errors import to_http_exception
from event_service.app.exceptions import (
    AgeRestrictedError,
    ConflictError,
    EventFullError,
    HoldExhaustedError,
    InsufficientCreditsError,
    InvalidRequestError,
    LedgerIntegrityError,
    NoActiveHoldError,
    NotFoundError,
)


@pytest.mark.parametrize(
    ("error", "status_code", "code"),
    [
        (NotFoundError("Event not found"), 404, "not_found"),
        (NoActiveHoldError("No active credit hold found for this event"), 404, "no_active_hold"),
        (AgeRestrictedError("Must be at least 21 years old to apply"), 403, "age_restricted"),
        (ConflictError("Already applied to this event"), 409, "conflict"),
        (HoldExhaustedError("exhausted"), 409, "hold_exhausted"),
        (EventFullError("Event is at full capacity"), 409, "event_full"),
        (InvalidRequestError("bad"), 400, "invalid_request"),
        (LedgerIntegrityError("negative"), 500, "ledger_integrity"),
    ],
)
def test_domain_errors_map_to_http_status(error, status_code: int, code: str) -> None:
    exc = to_http_exception(error)

    assert exc.status_code == status_code
    assert exc.detail == {"code": code, "message": error.message}


def test_insufficient_credits_detail_carries_amounts() -> None:
    exc = to_http_exception(InsufficientCreditsError(required=3, available=1))

    assert exc.status_code == 402
    assert exc.detail["required_credits"] == 3
    assert exc.detail["available_credits"] == 1
    assert exc.detail["shortfall"] == 2
