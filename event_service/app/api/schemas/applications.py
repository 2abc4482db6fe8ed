from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ...models.application import (
    ApplicationDecision,
    ApplicationWithApplicant,
    ApplicationWithEvent,
    EventApplication,
)


class ApplyRequest(BaseModel):
    event_id: str
    message: str | None = Field(default=None, max_length=1000)


class RespondRequest(BaseModel):
    decision: ApplicationDecision
    owner_response: str | None = Field(default=None, max_length=1000)


class ApplicationIdResponse(BaseModel):
    application_id: str


class ApplicationResponse(BaseModel):
    id: str | None
    event_id: str
    applicant_code: str
    status: str
    message: str | None
    owner_response: str | None
    event_title: str
    event_start_time: datetime | None
    room_title: str
    created_at: datetime

    @classmethod
    def from_domain(cls, application: EventApplication) -> "ApplicationResponse":
        return cls(
            id=application.id,
            event_id=application.event_id,
            applicant_code=application.applicant_code,
            status=application.status,
            message=application.message,
            owner_response=application.owner_response,
            event_title=application.event_title,
            event_start_time=application.event_start_time,
            room_title=application.room_title,
            created_at=application.created_at,
        )


class ApplicantResponse(BaseModel):
    user_code: str
    name: str
    profile_image: str | None


class EventApplicationItem(BaseModel):
    application: ApplicationResponse
    applicant: ApplicantResponse | None

    @classmethod
    def from_domain(cls, item: ApplicationWithApplicant) -> "EventApplicationItem":
        applicant = None
        if item.applicant is not None:
            applicant = ApplicantResponse(
                user_code=item.applicant.user_code,
                name=item.applicant.name,
                profile_image=item.applicant.profile_image,
            )
        return cls(
            application=ApplicationResponse.from_domain(item.application),
            applicant=applicant,
        )


class EventSummaryResponse(BaseModel):
    id: str | None
    title: str
    room_title: str
    start_time: datetime | None
    end_time: datetime | None
    max_guests: int
    is_active: bool


class MyApplicationItem(BaseModel):
    application: ApplicationResponse
    event: EventSummaryResponse

    @classmethod
    def from_domain(cls, item: ApplicationWithEvent) -> "MyApplicationItem":
        event = item.event
        return cls(
            application=ApplicationResponse.from_domain(item.application),
            event=EventSummaryResponse(
                id=event.id,
                title=event.title,
                room_title=event.room_title,
                start_time=event.start_time,
                end_time=event.end_time,
                max_guests=event.max_guests,
                is_active=event.is_active,
            ),
        )
