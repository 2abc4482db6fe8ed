"""API 공통 의존성: 호출자 식별, 내부 호출 인증, 이벤트 버스."""

from __future__ import annotations

import hmac

from fastapi import Depends, Header, HTTPException, status

from common.eventbus.core import EventBus
from common.eventbus.kafka import get_kafka_event_bus

from ..config import get_service_token


def get_current_user_code(
    x_user_code: str | None = Header(default=None),
) -> str:
    """게이트웨이가 인증 후 넣어 주는 X-User-Code 헤더에서 호출자를 읽는다."""

    user_code = (x_user_code or "").strip()
    if not user_code:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "unauthenticated", "message": "Not authenticated"},
        )
    return user_code


def require_service_token(
    x_service_token: str | None = Header(default=None),
    expected: str = Depends(get_service_token),
) -> None:
    """결제 게이트웨이 등 내부 서비스 호출만 허용한다."""

    if not x_service_token or not hmac.compare_digest(x_service_token, expected):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "forbidden", "message": "Invalid service token"},
        )


def get_event_bus() -> EventBus:
    """FastAPI DI용 EventBus 팩토리. 테스트에서는 dependency_overrides 로 교체한다."""

    return get_kafka_event_bus()
