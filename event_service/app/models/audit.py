from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class AuditSeverity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AuditEventType(StrEnum):
    EVENT_CREATED = "event_created"
    APPLICATION_SUBMITTED = "application_submitted"
    CONNECTION_CREATED = "connection_created"
    REFUND_REQUEST_SUBMITTED = "refund_request_submitted"
    REFUND_REQUEST_REVIEWED = "refund_request_reviewed"


class AuditEvent(BaseModel):
    """security_events 컬렉션에 남기는 감사 로그 한 건."""

    id: str | None = None
    event_type: AuditEventType
    user_code: str
    severity: AuditSeverity = AuditSeverity.LOW
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime
