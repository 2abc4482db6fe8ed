from __future__ import annotations

from pymongo.client_session import ClientSession
from pymongo.database import Database

from ..models.audit import AuditEvent
from .documents.audit_document import SecurityEventDocument
from .interfaces import AuditEventRepositoryInterface


class AuditEventRepository(AuditEventRepositoryInterface):
    """security_events 컬렉션 삽입 전용 레이어."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._col = database["security_events"]
        self._session = session

    def create(self, event: AuditEvent) -> None:
        payload = SecurityEventDocument.from_domain(event).to_mongo_record()
        self._col.insert_one(payload, session=self._session)
