import json
import logging
import os
import sys


# extra 로 넘어오면 그대로 JSON 필드로 옮겨 담는 키 목록
TRACE_EXTRA_KEYS: tuple[str, ...] = (
    "request_id",
    "span_id",
    "caller",
    "method",
    "path",
    "query_params",
    "status",
    "duration",
)

DOMAIN_EXTRA_KEYS: tuple[str, ...] = (
    "user_code",
    "event_id",
    "application_id",
    "refund_request_id",
    "amount",
    "topic",
)


def setup_logger(name: str = "room-dates", level: str | None = None) -> logging.Logger:
    """서비스 로거를 JSON 포맷으로 설정하고 반환한다.

    Args:
        name: 로거 이름. SERVICE_NAME 환경변수가 있으면 그 값이 우선한다.
        level: 로그 레벨. None 이면 LOG_LEVEL 환경변수, 그것도 없으면 INFO.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")

    log_level = getattr(logging, level.upper(), logging.INFO)

    service_name = os.getenv("SERVICE_NAME", name)
    logger = logging.getLogger(service_name)
    logger.setLevel(log_level)

    # create_app 이 여러 번 호출되어도 한 줄씩만 출력되도록 한다.
    if logger.handlers:
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    # 모듈 로거(logging.getLogger(__name__))들은 루트 로거로 전파된다.
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        root_logger.addHandler(handler)
        root_logger.setLevel(log_level)

    return logger


class JsonFormatter(logging.Formatter):
    """한 줄에 하나의 JSON 객체를 출력하는 포맷터.

    - datetime, level, logger, message 는 항상 포함한다.
    - 요청 추적 필드와 도메인 식별자(user_code, event_id 등)는 extra 로 넘어온 경우에만 포함한다.
    - 예외 정보가 있으면 exc_info 필드에 문자열로 추가한다.
    """

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        log_record: dict[str, object] = {
            "datetime": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in (*TRACE_EXTRA_KEYS, *DOMAIN_EXTRA_KEYS):
            if hasattr(record, key):
                log_record[key] = getattr(record, key)

        service_name = getattr(record, "service_name", None) or os.getenv(
            "SERVICE_NAME"
        )
        if service_name:
            log_record["service_name"] = service_name

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_record, ensure_ascii=False, default=str)
