from __future__ import annotations

from common.mongo.types import (
    BaseDocument,
    MongoDateTime,
    build_document_data_from_domain,
    from_object_id,
)

from ...models.event import ChatParticipant, Connection, Event, Room


class RoomDocument(BaseDocument):
    """rooms 컬렉션 도큐먼트 (읽기 전용)."""

    owner_code: str
    title: str
    is_active: bool = True

    def to_domain(self) -> Room:
        return Room(id=from_object_id(self.id), **self.model_dump(exclude={"id"}))


class EventDocument(BaseDocument):
    """events 컬렉션 도큐먼트."""

    room_id: str
    owner_code: str
    room_title: str
    title: str
    description: str | None = None
    start_time: MongoDateTime | None = None
    end_time: MongoDateTime | None = None
    max_guests: int = 1
    min_age: int | None = None
    max_age: int | None = None
    chat_participant_count: int = 0
    is_active: bool = True

    @classmethod
    def from_domain(cls, event: Event) -> "EventDocument":
        return cls.model_validate(build_document_data_from_domain(event))

    def to_domain(self) -> Event:
        return Event(id=from_object_id(self.id), **self.model_dump(exclude={"id"}))


class ChatParticipantDocument(BaseDocument):
    """event_chat_participants 컬렉션 도큐먼트."""

    event_id: str
    user_code: str
    role: str
    joined_at: MongoDateTime

    @classmethod
    def from_domain(cls, participant: ChatParticipant) -> "ChatParticipantDocument":
        return cls.model_validate(build_document_data_from_domain(participant))

    def to_domain(self) -> ChatParticipant:
        return ChatParticipant(
            id=from_object_id(self.id), **self.model_dump(exclude={"id"})
        )


class ConnectionDocument(BaseDocument):
    """connections 컬렉션 도큐먼트."""

    user1_code: str
    user2_code: str
    status: str
    connected_via_event_id: str
    user1_display_name: str | None = None
    user2_display_name: str | None = None
    user1_profile_image: str | None = None
    user2_profile_image: str | None = None

    @classmethod
    def from_domain(cls, connection: Connection) -> "ConnectionDocument":
        return cls.model_validate(build_document_data_from_domain(connection))

    def to_domain(self) -> Connection:
        return Connection(id=from_object_id(self.id), **self.model_dump(exclude={"id"}))
