from __future__ import annotations

import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml


DEFAULT_CONFIG_FILE_NAME = "config.yaml"
SERVICE_TOKEN_ENV = "SERVICE_TOKEN"


@dataclass(slots=True)
class CreditsConfig:
    welcome_grant: int = 4
    default_max_guests: int = 1
    transaction_history_limit: int = 50


@dataclass(slots=True)
class RefundsConfig:
    credits_per_refund: int = 1


@dataclass(slots=True)
class AppConfig:
    """event-service 설정 루트.

    - credits: 크레딧 원장 관련 수치
    - refunds: 노쇼 환불 관련 수치
    """

    credits: CreditsConfig
    refunds: RefundsConfig


def _find_config_path() -> Path:
    """현재 작업 디렉토리부터 상위로 올라가며 config.yaml 을 찾는다."""

    current = Path.cwd()
    for directory in (current, *current.parents):
        candidate = directory / DEFAULT_CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate

    raise RuntimeError(
        f"{DEFAULT_CONFIG_FILE_NAME} not found. Place config.yaml in project root.",
    )


def _read_positive_int(section: dict[str, Any], key: str, default: int, path: Path) -> int:
    raw = section.get(key, default)
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise RuntimeError(f"invalid {key} in {path}: {raw!r}") from exc
    if value <= 0:
        raise RuntimeError(f"{key} in {path} must be positive, got {value}")
    return value


def load_config(path: Path | None = None) -> AppConfig:
    """config.yaml 을 읽어 AppConfig 로 반환한다. 빠진 키는 기본값을 쓴다."""

    path = path or _find_config_path()
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    credits_raw = data.get("credits") or {}
    refunds_raw = data.get("refunds") or {}

    credits = CreditsConfig(
        welcome_grant=_read_positive_int(credits_raw, "welcome_grant", 4, path),
        default_max_guests=_read_positive_int(
            credits_raw, "default_max_guests", 1, path
        ),
        transaction_history_limit=_read_positive_int(
            credits_raw, "transaction_history_limit", 50, path
        ),
    )
    refunds = RefundsConfig(
        credits_per_refund=_read_positive_int(
            refunds_raw, "credits_per_refund", 1, path
        ),
    )
    return AppConfig(credits=credits, refunds=refunds)


_config: AppConfig | None = None
_lock = threading.Lock()


def get_config() -> AppConfig:
    """프로세스 전역 설정 싱글톤. FastAPI 의존성으로도 사용한다."""

    global _config

    if _config is not None:
        return _config

    with _lock:
        if _config is None:
            _config = load_config()
        return _config


def get_service_token() -> str:
    """결제 게이트웨이가 내부 API 호출 시 보내는 X-Service-Token 기대값."""

    value = os.getenv(SERVICE_TOKEN_ENV)
    if not value:
        raise RuntimeError(f"{SERVICE_TOKEN_ENV} environment variable is required")
    return value
