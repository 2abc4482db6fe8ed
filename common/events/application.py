"""이벤트 참가 신청 관련 도메인 이벤트 정의."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Self


class ApplicationEventType:
    """참가 신청 이벤트 타입 상수."""

    APPLICATION_SUBMITTED = "application.submitted"
    APPLICATION_APPROVED = "application.approved"
    APPLICATION_REJECTED = "application.rejected"


@dataclass(slots=True)
class ApplicationSubmittedEvent:
    """참가 신청이 접수되면 발행된다. 알림 서비스가 이벤트 주최자에게 알린다."""

    id: str
    type: str
    timestamp: str
    source: str
    version: str
    application_id: str
    event_id: str
    applicant_code: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            id=str(data["id"]),
            type=str(data["type"]),
            timestamp=str(data["timestamp"]),
            source=str(data["source"]),
            version=str(data.get("version", "1.0")),
            application_id=str(data["application_id"]),
            event_id=str(data["event_id"]),
            applicant_code=str(data["applicant_code"]),
        )


@dataclass(slots=True)
class ApplicationDecidedEvent:
    """주최자가 신청을 승인/거절하면 발행된다.

    type 으로 승인(application.approved)과 거절(application.rejected)을 구분한다.
    """

    id: str
    type: str
    timestamp: str
    source: str
    version: str
    application_id: str
    event_id: str
    applicant_code: str
    owner_code: str
    owner_response: str | None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            id=str(data["id"]),
            type=str(data["type"]),
            timestamp=str(data["timestamp"]),
            source=str(data["source"]),
            version=str(data.get("version", "1.0")),
            application_id=str(data["application_id"]),
            event_id=str(data["event_id"]),
            applicant_code=str(data["applicant_code"]),
            owner_code=str(data["owner_code"]),
            owner_response=data.get("owner_response"),
        )
