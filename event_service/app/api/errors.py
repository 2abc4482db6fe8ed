from __future__ import annotations

from fastapi import HTTPException, status

from ..exceptions import (
    AgeRestrictedError,
    ConflictError,
    EventFullError,
    EventServiceError,
    ForbiddenError,
    InsufficientCreditsError,
    InvalidRequestError,
    InvalidStateError,
    LedgerIntegrityError,
    NotFoundError,
    UnauthenticatedError,
)


# 위에서부터 먼저 일치하는 항목을 쓴다. 하위 클래스가 상위 클래스보다 앞에 와야 한다.
_STATUS_BY_ERROR: list[tuple[type[EventServiceError], int]] = [
    (UnauthenticatedError, status.HTTP_401_UNAUTHORIZED),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (AgeRestrictedError, status.HTTP_403_FORBIDDEN),
    (ConflictError, status.HTTP_409_CONFLICT),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (EventFullError, status.HTTP_409_CONFLICT),
    (InsufficientCreditsError, status.HTTP_402_PAYMENT_REQUIRED),
    (InvalidRequestError, status.HTTP_400_BAD_REQUEST),
    (LedgerIntegrityError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def to_http_exception(exc: EventServiceError) -> HTTPException:
    """도메인 예외를 HTTPException 으로 바꾼다. detail 은 {"code", "message"} 형태."""

    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, mapped in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = mapped
            break

    detail: dict[str, object] = {"code": exc.code, "message": exc.message}
    if isinstance(exc, InsufficientCreditsError):
        detail.update(
            required_credits=exc.required,
            available_credits=exc.available,
            shortfall=exc.shortfall,
        )
    return HTTPException(status_code=status_code, detail=detail)
