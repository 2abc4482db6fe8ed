from __future__ import annotations

from typing import Any

from pydantic import Field

from common.mongo.types import BaseDocument, build_document_data_from_domain

from ...models.audit import AuditEvent


class SecurityEventDocument(BaseDocument):
    """security_events 컬렉션 도큐먼트. 삽입만 한다."""

    event_type: str
    user_code: str
    severity: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, event: AuditEvent) -> "SecurityEventDocument":
        return cls.model_validate(build_document_data_from_domain(event))
