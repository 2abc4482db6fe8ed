"""노쇼 환불 요청 도메인 모델.

pending 상태에서만 관리자가 approved/rejected 로 심사할 수 있다.
under_review 는 저장 형식에는 있지만 이 서비스에서 그 상태로 전이시키는 경로는 없다.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class RefundStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    UNDER_REVIEW = "under_review"


class RefundDecision(StrEnum):
    APPROVED = "approved"
    REJECTED = "rejected"


class RefundRequest(BaseModel):
    id: str | None = None
    user_code: str  # 요청한 이벤트 주최자
    event_id: str
    application_id: str
    participant_user_code: str
    credits_to_refund: int = 1
    reason: str
    evidence_images: list[str] = Field(default_factory=list)
    status: RefundStatus = RefundStatus.PENDING
    admin_notes: str | None = None
    reviewed_by: str | None = None
    submitted_at: datetime
    reviewed_at: datetime | None = None
    processed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
