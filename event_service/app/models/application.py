"""이벤트 참가 신청 도메인 모델.

상태 전이: pending -> approved | rejected (주최자), pending -> cancelled (신청자).
approved/rejected/cancelled 는 종료 상태다.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel

from .event import Event


class ApplicationStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class ApplicationDecision(StrEnum):
    APPROVED = "approved"
    REJECTED = "rejected"


class EventApplication(BaseModel):
    id: str | None = None
    event_id: str
    applicant_code: str
    status: ApplicationStatus = ApplicationStatus.PENDING
    message: str | None = None
    owner_response: str | None = None
    event_title: str
    event_start_time: datetime | None = None
    room_title: str
    created_at: datetime
    updated_at: datetime


class ApplicantSummary(BaseModel):
    user_code: str
    name: str
    profile_image: str | None = None


class ApplicationWithApplicant(BaseModel):
    """주최자용 신청 목록 항목."""

    application: EventApplication
    applicant: ApplicantSummary | None = None


class ApplicationWithEvent(BaseModel):
    """신청자용 내 신청 목록 항목."""

    application: EventApplication
    event: Event
