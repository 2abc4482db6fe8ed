from __future__ import annotations

import logging
import threading
from typing import Optional, cast

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from .config import get_mongo_db_name, get_mongo_uri


logger = logging.getLogger(__name__)


_client: Optional[MongoClient] = None
_db: Optional[Database] = None
_lock = threading.Lock()


def get_client() -> MongoClient:
    """전역 MongoClient 싱글톤을 반환한다.

    - MONGO_URI 로 접속하고 ping 으로 연결을 검증한다.
    - MONGO_DB_NAME 이 없으면 URI 의 기본 데이터베이스를 사용한다.
    - 최초 접속 시 한 번만 인덱스를 보장한다.
    """

    global _client, _db

    if _client is not None:
        return _client

    with _lock:
        if _client is not None:
            return _client

        uri = get_mongo_uri()
        client = MongoClient(uri, tz_aware=True)

        try:
            client.admin.command("ping")
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(f"failed to connect to MongoDB: {exc}") from exc

        db_name = get_mongo_db_name()
        try:
            if db_name:
                db = client[db_name]
            else:
                db = client.get_default_database()
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(
                "MongoDB database name must be specified via MONGO_DB_NAME or in MONGO_URI (mongodb://.../db_name)",
            ) from exc

        _client = client
        _db = db

        try:
            _ensure_indexes(_db)
        except Exception as exc:  # noqa: BLE001
            logger.error("failed to ensure MongoDB indexes: %s", exc)
            raise

        safe_db = cast(Database, _db)
        logger.info("MongoDB connected and indexes ensured (db=%s)", safe_db.name)
        return _client


def get_database() -> Database:
    """전역 기본 Database 객체를 반환한다."""

    global _db

    if _db is None:
        get_client()
    assert _db is not None
    return _db


def _ensure_indexes(db: Database) -> None:
    """필수 인덱스를 생성한다.

    트랜잭션 안에서는 컬렉션/인덱스를 만들 수 없으므로 기동 시점에 모두 만든다.
    유니크 인덱스는 동시 요청이 같은 검사를 통과했을 때의 마지막 방어선이다.
    """

    accounts = db["credit_accounts"]
    accounts.create_index([("user_code", ASCENDING)], name="uniq_user_code", unique=True)

    holds = db["credit_holds"]
    holds.create_index(
        [("user_code", ASCENDING), ("event_id", ASCENDING)],
        name="uniq_active_hold_per_event",
        unique=True,
        partialFilterExpression={"status": "active"},
    )
    holds.create_index(
        [("user_code", ASCENDING), ("status", ASCENDING)],
        name="idx_user_status",
    )

    transactions = db["credit_transactions"]
    transactions.create_index(
        [("user_code", ASCENDING), ("created_at", DESCENDING), ("_id", DESCENDING)],
        name="idx_user_created_at_desc",
    )
    transactions.create_index(
        [("payment_transaction_id", ASCENDING)],
        name="uniq_payment_transaction_id",
        unique=True,
        partialFilterExpression={"payment_transaction_id": {"$type": "string"}},
    )

    events = db["events"]
    events.create_index([("owner_code", ASCENDING)], name="idx_owner_code")
    events.create_index(
        [("room_id", ASCENDING), ("is_active", ASCENDING)],
        name="idx_room_active",
    )

    applications = db["event_applications"]
    applications.create_index(
        [("event_id", ASCENDING), ("applicant_code", ASCENDING)],
        name="uniq_event_applicant",
        unique=True,
    )
    applications.create_index(
        [("event_id", ASCENDING), ("status", ASCENDING)],
        name="idx_event_status",
    )
    applications.create_index(
        [("applicant_code", ASCENDING), ("created_at", DESCENDING)],
        name="idx_applicant_created_at_desc",
    )

    connections = db["connections"]
    connections.create_index(
        [("user1_code", ASCENDING), ("user2_code", ASCENDING)],
        name="uniq_connection_pair",
        unique=True,
    )

    participants = db["event_chat_participants"]
    participants.create_index(
        [("event_id", ASCENDING), ("user_code", ASCENDING)],
        name="uniq_event_participant",
        unique=True,
    )

    refunds = db["refund_requests"]
    refunds.create_index(
        [("application_id", ASCENDING)],
        name="uniq_application_id",
        unique=True,
    )
    refunds.create_index(
        [("status", ASCENDING), ("submitted_at", ASCENDING)],
        name="idx_status_submitted_at",
    )
    refunds.create_index(
        [("user_code", ASCENDING), ("submitted_at", DESCENDING)],
        name="idx_user_submitted_at_desc",
    )

    security_events = db["security_events"]
    security_events.create_index(
        [("user_code", ASCENDING), ("created_at", DESCENDING)],
        name="idx_user_created_at_desc",
    )

    users = db["users"]
    users.create_index(
        [("user_code", ASCENDING)],
        name="uniq_user_code",
        unique=True,
    )
