from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


# 소비 측 재시도 토픽 수와 맞춘다. 발행 측은 max_retry 기본값 계산에만 쓴다.
RetryDelays: list[float] = [
    60.0,
    300.0,
    600.0,
    1800.0,
    3600.0,
]


@dataclass(slots=True)
class Event:
    """Kafka 메시지 봉투(envelope).

    payload 는 JSON 직렬화 가능한 dict 이고, 인코딩은 버스 구현이 담당한다.
    retry/max_retry/last_error 는 소비 측 재시도 처리를 위한 메타데이터다.
    """

    id: str
    payload: Any
    retry: int = 0
    max_retry: int = 0
    last_error: str | None = None

    def __post_init__(self) -> None:
        if self.max_retry <= 0 or self.max_retry > len(RetryDelays):
            self.max_retry = len(RetryDelays)


@dataclass(frozen=True, slots=True)
class Topic:
    base: str


class EventBus(Protocol):
    """라우터가 의존하는 최소 발행 계약. 테스트에서는 메모리 구현으로 대체한다."""

    def publish(self, topic: str, event: Event) -> None:  # pragma: no cover - Protocol
        ...
