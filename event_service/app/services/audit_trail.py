from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends
from pymongo.client_session import ClientSession
from pymongo.database import Database

from common.mongo.client import get_database
from common.mongo.session import get_mongo_session

from ..models.audit import AuditEvent, AuditEventType, AuditSeverity
from ..repositories.audit_repository import AuditEventRepository
from ..repositories.interfaces import AuditEventRepositoryInterface


logger = logging.getLogger(__name__)


class AuditTrail:
    """security_events 에 감사 로그를 남긴다. 같은 요청 트랜잭션에 포함된다."""

    def __init__(self, repo: AuditEventRepositoryInterface) -> None:
        self._repo = repo

    def record(
        self,
        event_type: AuditEventType,
        user_code: str,
        metadata: dict[str, Any] | None = None,
        severity: AuditSeverity = AuditSeverity.LOW,
    ) -> None:
        now = datetime.now(timezone.utc)
        self._repo.create(
            AuditEvent(
                event_type=event_type,
                user_code=user_code,
                severity=severity,
                metadata=metadata or {},
                created_at=now,
                updated_at=now,
            )
        )
        logger.debug("audit event recorded: %s", event_type, extra={"user_code": user_code})


def get_audit_event_repository(
    db: Database = Depends(get_database),
    session: ClientSession = Depends(get_mongo_session),
) -> AuditEventRepositoryInterface:
    """FastAPI DI용 AuditEventRepository 팩토리."""

    return AuditEventRepository(db, session)


def get_audit_trail(
    repo: AuditEventRepositoryInterface = Depends(get_audit_event_repository),
) -> AuditTrail:
    """FastAPI DI용 AuditTrail 팩토리."""

    return AuditTrail(repo)
