from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pymongo import ReturnDocument
from pymongo.client_session import ClientSession
from pymongo.database import Database

from common.mongo.types import parse_object_id

from ..models.application import ApplicationStatus, EventApplication
from ..models.event import Connection
from .documents.application_document import EventApplicationDocument
from .documents.event_document import ConnectionDocument
from .interfaces import ApplicationRepositoryInterface, ConnectionRepositoryInterface


class ApplicationRepository(ApplicationRepositoryInterface):
    """event_applications 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._col = database["event_applications"]
        self._session = session

    @staticmethod
    def _from_document(doc: dict) -> EventApplication:
        return EventApplicationDocument.model_validate(doc).to_domain()

    def find_by_id(self, application_id: str) -> EventApplication | None:
        object_id = parse_object_id(application_id)
        if object_id is None:
            return None
        doc = self._col.find_one({"_id": object_id}, session=self._session)
        if not doc:
            return None
        return self._from_document(doc)

    def find_by_event_and_applicant(
        self, event_id: str, applicant_code: str
    ) -> EventApplication | None:
        doc = self._col.find_one(
            {"event_id": event_id, "applicant_code": applicant_code},
            session=self._session,
        )
        if not doc:
            return None
        return self._from_document(doc)

    def insert(self, application: EventApplication) -> EventApplication:
        payload = EventApplicationDocument.from_domain(application).to_mongo_record()
        result = self._col.insert_one(payload, session=self._session)
        return application.model_copy(update={"id": str(result.inserted_id)})

    def update_status(
        self,
        application_id: str,
        status: ApplicationStatus,
        owner_response: str | None = None,
    ) -> EventApplication | None:
        object_id = parse_object_id(application_id)
        if object_id is None:
            return None

        updates: dict[str, Any] = {
            "status": status,
            "updated_at": datetime.now(timezone.utc),
        }
        if owner_response is not None:
            updates["owner_response"] = owner_response

        doc = self._col.find_one_and_update(
            {"_id": object_id},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
            session=self._session,
        )
        if not doc:
            return None
        return self._from_document(doc)

    def count_by_event_and_status(self, event_id: str, status: ApplicationStatus) -> int:
        return self._col.count_documents(
            {"event_id": event_id, "status": status}, session=self._session
        )

    def list_by_event(
        self, event_id: str, status: ApplicationStatus | None = None
    ) -> list[EventApplication]:
        query: dict[str, Any] = {"event_id": event_id}
        if status is not None:
            query["status"] = status
        cursor = self._col.find(
            query, sort=[("created_at", -1), ("_id", -1)], session=self._session
        )
        return [self._from_document(doc) for doc in cursor]

    def list_by_applicant(
        self, applicant_code: str, status: ApplicationStatus | None = None
    ) -> list[EventApplication]:
        query: dict[str, Any] = {"applicant_code": applicant_code}
        if status is not None:
            query["status"] = status
        cursor = self._col.find(
            query, sort=[("created_at", -1), ("_id", -1)], session=self._session
        )
        return [self._from_document(doc) for doc in cursor]

    def cancel_pending_by_event(self, event_id: str) -> int:
        result = self._col.update_many(
            {"event_id": event_id, "status": ApplicationStatus.PENDING},
            {
                "$set": {
                    "status": ApplicationStatus.CANCELLED,
                    "updated_at": datetime.now(timezone.utc),
                }
            },
            session=self._session,
        )
        return result.modified_count


class ConnectionRepository(ConnectionRepositoryInterface):
    """connections 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._col = database["connections"]
        self._session = session

    def find_between(self, user_a: str, user_b: str) -> Connection | None:
        doc = self._col.find_one(
            {
                "$or": [
                    {"user1_code": user_a, "user2_code": user_b},
                    {"user1_code": user_b, "user2_code": user_a},
                ]
            },
            session=self._session,
        )
        if not doc:
            return None
        return ConnectionDocument.model_validate(doc).to_domain()

    def insert(self, connection: Connection) -> Connection:
        payload = ConnectionDocument.from_domain(connection).to_mongo_record()
        result = self._col.insert_one(payload, session=self._session)
        return connection.model_copy(update={"id": str(result.inserted_id)})
