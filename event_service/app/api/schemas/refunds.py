from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ...models.refund import RefundDecision, RefundRequest


class SubmitRefundRequest(BaseModel):
    event_id: str
    application_id: str
    participant_user_code: str
    reason: str = Field(min_length=1, max_length=2000)
    evidence_images: list[str] = Field(default_factory=list, max_length=10)


class SubmitRefundResponse(BaseModel):
    refund_request_id: str


class ReviewRefundRequest(BaseModel):
    decision: RefundDecision
    admin_notes: str | None = Field(default=None, max_length=2000)


class ReviewRefundResponse(BaseModel):
    success: bool = True
    decision: RefundDecision


class RefundRequestResponse(BaseModel):
    id: str | None
    user_code: str
    event_id: str
    application_id: str
    participant_user_code: str
    credits_to_refund: int
    reason: str
    evidence_images: list[str]
    status: str
    admin_notes: str | None
    reviewed_by: str | None
    submitted_at: datetime
    reviewed_at: datetime | None
    processed_at: datetime | None

    @classmethod
    def from_domain(cls, request: RefundRequest) -> "RefundRequestResponse":
        return cls(
            id=request.id,
            user_code=request.user_code,
            event_id=request.event_id,
            application_id=request.application_id,
            participant_user_code=request.participant_user_code,
            credits_to_refund=request.credits_to_refund,
            reason=request.reason,
            evidence_images=request.evidence_images,
            status=request.status,
            admin_notes=request.admin_notes,
            reviewed_by=request.reviewed_by,
            submitted_at=request.submitted_at,
            reviewed_at=request.reviewed_at,
            processed_at=request.processed_at,
        )
