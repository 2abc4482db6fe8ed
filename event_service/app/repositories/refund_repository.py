from __future__ import annotations

from pymongo import ReturnDocument
from pymongo.client_session import ClientSession
from pymongo.database import Database

from common.mongo.types import parse_object_id

from ..models.refund import RefundRequest, RefundStatus
from .documents.refund_document import RefundRequestDocument
from .interfaces import RefundRequestRepositoryInterface


class RefundRequestRepository(RefundRequestRepositoryInterface):
    """refund_requests 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._col = database["refund_requests"]
        self._session = session

    @staticmethod
    def _from_document(doc: dict) -> RefundRequest:
        return RefundRequestDocument.model_validate(doc).to_domain()

    def find_by_id(self, refund_request_id: str) -> RefundRequest | None:
        object_id = parse_object_id(refund_request_id)
        if object_id is None:
            return None
        doc = self._col.find_one({"_id": object_id}, session=self._session)
        if not doc:
            return None
        return self._from_document(doc)

    def find_by_application_id(self, application_id: str) -> RefundRequest | None:
        doc = self._col.find_one(
            {"application_id": application_id}, session=self._session
        )
        if not doc:
            return None
        return self._from_document(doc)

    def insert(self, request: RefundRequest) -> RefundRequest:
        payload = RefundRequestDocument.from_domain(request).to_mongo_record()
        result = self._col.insert_one(payload, session=self._session)
        return request.model_copy(update={"id": str(result.inserted_id)})

    def update_review(self, request: RefundRequest) -> RefundRequest:
        object_id = parse_object_id(request.id)
        if object_id is None:
            raise LookupError(f"invalid refund request id: {request.id!r}")
        doc = self._col.find_one_and_update(
            {"_id": object_id},
            {
                "$set": {
                    "status": request.status,
                    "admin_notes": request.admin_notes,
                    "reviewed_by": request.reviewed_by,
                    "reviewed_at": request.reviewed_at,
                    "processed_at": request.processed_at,
                    "updated_at": request.updated_at,
                }
            },
            return_document=ReturnDocument.AFTER,
            session=self._session,
        )
        if not doc:
            raise LookupError(f"refund request not found: {request.id}")
        return self._from_document(doc)

    def list_by_user(self, user_code: str) -> list[RefundRequest]:
        cursor = self._col.find(
            {"user_code": user_code},
            sort=[("submitted_at", -1), ("_id", -1)],
            session=self._session,
        )
        return [self._from_document(doc) for doc in cursor]

    def list_by_status(self, status: RefundStatus) -> list[RefundRequest]:
        cursor = self._col.find(
            {"status": status},
            sort=[("submitted_at", 1), ("_id", 1)],
            session=self._session,
        )
        return [self._from_document(doc) for doc in cursor]
