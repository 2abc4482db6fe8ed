from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    MongoDateTime,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.application import EventApplication


class EventApplicationDocument(BaseDocument):
    """event_applications 컬렉션 도큐먼트. (event_id, applicant_code) 유니크."""

    event_id: str
    applicant_code: str
    status: str
    message: str | None = None
    owner_response: str | None = None
    event_title: str
    event_start_time: MongoDateTime | None = None
    room_title: str

    @classmethod
    def from_domain(cls, application: EventApplication) -> "EventApplicationDocument":
        return cls.model_validate(build_document_data_from_domain(application))

    def to_domain(self) -> EventApplication:
        return EventApplication(
            id=from_object_id(self.id), **self.model_dump(exclude={"id"})
        )
