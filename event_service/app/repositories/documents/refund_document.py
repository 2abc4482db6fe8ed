from __future__ import annotations

from pydantic import Field

from common.mongo.types import (
    BaseDocument,
    MongoDateTime,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.refund import RefundRequest


class RefundRequestDocument(BaseDocument):
    """refund_requests 컬렉션 도큐먼트. application_id 유니크."""

    user_code: str
    event_id: str
    application_id: str
    participant_user_code: str
    credits_to_refund: int
    reason: str
    evidence_images: list[str] = Field(default_factory=list)
    status: str
    admin_notes: str | None = None
    reviewed_by: str | None = None
    submitted_at: MongoDateTime
    reviewed_at: MongoDateTime | None = None
    processed_at: MongoDateTime | None = None

    @classmethod
    def from_domain(cls, request: RefundRequest) -> "RefundRequestDocument":
        return cls.model_validate(build_document_data_from_domain(request))

    def to_domain(self) -> RefundRequest:
        return RefundRequest(id=from_object_id(self.id), **self.model_dump(exclude={"id"}))
