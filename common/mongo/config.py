from __future__ import annotations

import os


MONGO_URI_ENV = "MONGO_URI"
MONGO_DB_NAME_ENV = "MONGO_DB_NAME"
MONGO_USE_TRANSACTIONS_ENV = "MONGO_USE_TRANSACTIONS"


def get_mongo_uri() -> str:
    """MongoDB 접속 URI. 설정이 없으면 기동 시점에 바로 실패한다."""

    value = os.getenv(MONGO_URI_ENV)
    if not value:
        raise RuntimeError(
            f"{MONGO_URI_ENV} environment variable is required for MongoDB",
        )
    return value


def get_mongo_db_name() -> str | None:
    """사용할 데이터베이스 이름. 비어 있으면 URI 의 기본 DB 를 쓴다."""

    value = os.getenv(MONGO_DB_NAME_ENV, "").strip()
    return value or None


def use_transactions() -> bool:
    """요청 단위 multi-document 트랜잭션 사용 여부.

    트랜잭션은 replica set 에서만 동작하므로, 단일 mongod 로 개발할 때만
    MONGO_USE_TRANSACTIONS=false 로 끈다. 기본값은 사용.
    """

    raw = os.getenv(MONGO_USE_TRANSACTIONS_ENV, "true").strip().lower()
    return raw not in {"0", "false", "no", "off"}
