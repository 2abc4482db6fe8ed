"""환불 요청 관련 도메인 이벤트 정의."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Self


class RefundEventType:
    """환불 이벤트 타입 상수."""

    REFUND_SUBMITTED = "refund.submitted"
    REFUND_REVIEWED = "refund.reviewed"


@dataclass(slots=True)
class RefundSubmittedEvent:
    """주최자가 노쇼 참가자에 대한 환불을 요청하면 발행된다."""

    id: str
    type: str
    timestamp: str
    source: str
    version: str
    refund_request_id: str
    user_code: str
    event_id: str
    application_id: str
    credits_to_refund: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            id=str(data["id"]),
            type=str(data["type"]),
            timestamp=str(data["timestamp"]),
            source=str(data["source"]),
            version=str(data.get("version", "1.0")),
            refund_request_id=str(data["refund_request_id"]),
            user_code=str(data["user_code"]),
            event_id=str(data["event_id"]),
            application_id=str(data["application_id"]),
            credits_to_refund=int(data["credits_to_refund"]),
        )


@dataclass(slots=True)
class RefundReviewedEvent:
    """관리자가 환불 요청을 심사하면 발행된다. 승인 시 credits_restored 가 0 보다 크다."""

    id: str
    type: str
    timestamp: str
    source: str
    version: str
    refund_request_id: str
    user_code: str
    reviewed_by: str
    decision: str
    credits_restored: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            id=str(data["id"]),
            type=str(data["type"]),
            timestamp=str(data["timestamp"]),
            source=str(data["source"]),
            version=str(data.get("version", "1.0")),
            refund_request_id=str(data["refund_request_id"]),
            user_code=str(data["user_code"]),
            reviewed_by=str(data["reviewed_by"]),
            decision=str(data["decision"]),
            credits_restored=int(data["credits_restored"]),
        )
