from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict
from typing import Optional

from confluent_kafka import Producer

from .config import get_brokers, get_message_max_bytes
from .core import Event

logger = logging.getLogger(__name__)


class KafkaEventBus:
    """confluent-kafka Producer 기반 발행 전용 EventBus.

    발행은 fire-and-forget 이다. 전달 실패는 delivery callback 에서 로그로만 남기고
    호출자에게 예외를 올리지 않는다.
    """

    def __init__(self, brokers: str, message_max_bytes: int | None = None) -> None:
        conf: dict[str, object] = {"bootstrap.servers": brokers}
        if message_max_bytes is not None:
            conf["message.max.bytes"] = message_max_bytes
        self._producer = Producer(conf)
        self._brokers = brokers

    def close(self) -> None:
        self._producer.flush()

    def publish(self, topic: str, event: Event) -> None:
        payload = json.dumps(asdict(event), ensure_ascii=False).encode("utf-8")

        def _delivery_callback(err, msg) -> None:  # type: ignore[no-untyped-def]
            if err is not None:
                logger.error(
                    "failed to deliver message to %s: %s",
                    msg.topic(),
                    err,
                    extra={"topic": topic},
                )

        try:
            self._producer.produce(
                topic=topic,
                value=payload,
                key=event.id.encode("utf-8"),
                callback=_delivery_callback,
            )
        except BufferError as exc:
            logger.error(
                "kafka producer queue is full, dropping event %s: %s",
                event.id,
                exc,
                extra={"topic": topic},
            )
            return
        self._producer.poll(0)


_bus: Optional[KafkaEventBus] = None
_lock = threading.Lock()


def get_kafka_event_bus() -> KafkaEventBus:
    """프로세스 전역 KafkaEventBus 싱글톤. FastAPI 의존성으로도 사용한다."""

    global _bus

    if _bus is not None:
        return _bus

    with _lock:
        if _bus is None:
            _bus = KafkaEventBus(get_brokers(), get_message_max_bytes())
        return _bus


def close_kafka_event_bus() -> None:
    global _bus

    with _lock:
        if _bus is not None:
            _bus.close()
            _bus = None
