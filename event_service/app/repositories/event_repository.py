from __future__ import annotations

from datetime import datetime, timezone

from pymongo.client_session import ClientSession
from pymongo.database import Database

from common.mongo.types import parse_object_id

from ..models.event import ChatParticipant, Event, Room
from .documents.event_document import (
    ChatParticipantDocument,
    EventDocument,
    RoomDocument,
)
from .interfaces import (
    ChatParticipantRepositoryInterface,
    EventRepositoryInterface,
    RoomRepositoryInterface,
)


class RoomRepository(RoomRepositoryInterface):
    """rooms 컬렉션 조회 전용 레이어."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._col = database["rooms"]
        self._session = session

    def find_by_id(self, room_id: str) -> Room | None:
        object_id = parse_object_id(room_id)
        if object_id is None:
            return None
        doc = self._col.find_one({"_id": object_id}, session=self._session)
        if not doc:
            return None
        return RoomDocument.model_validate(doc).to_domain()


class EventRepository(EventRepositoryInterface):
    """events 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._col = database["events"]
        self._session = session

    def find_by_id(self, event_id: str) -> Event | None:
        object_id = parse_object_id(event_id)
        if object_id is None:
            return None
        doc = self._col.find_one({"_id": object_id}, session=self._session)
        if not doc:
            return None
        return EventDocument.model_validate(doc).to_domain()

    def insert(self, event: Event) -> Event:
        payload = EventDocument.from_domain(event).to_mongo_record()
        result = self._col.insert_one(payload, session=self._session)
        return event.model_copy(update={"id": str(result.inserted_id)})

    def deactivate(self, event_id: str) -> bool:
        object_id = parse_object_id(event_id)
        if object_id is None:
            return False
        result = self._col.update_one(
            {"_id": object_id},
            {"$set": {"is_active": False, "updated_at": datetime.now(timezone.utc)}},
            session=self._session,
        )
        return result.matched_count > 0

    def increment_chat_participant_count(self, event_id: str, delta: int) -> None:
        object_id = parse_object_id(event_id)
        if object_id is None:
            return
        self._col.update_one(
            {"_id": object_id},
            {
                "$inc": {"chat_participant_count": delta},
                "$set": {"updated_at": datetime.now(timezone.utc)},
            },
            session=self._session,
        )


class ChatParticipantRepository(ChatParticipantRepositoryInterface):
    """event_chat_participants 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database, session: ClientSession | None = None) -> None:
        self._col = database["event_chat_participants"]
        self._session = session

    def find(self, event_id: str, user_code: str) -> ChatParticipant | None:
        doc = self._col.find_one(
            {"event_id": event_id, "user_code": user_code}, session=self._session
        )
        if not doc:
            return None
        return ChatParticipantDocument.model_validate(doc).to_domain()

    def insert(self, participant: ChatParticipant) -> ChatParticipant:
        payload = ChatParticipantDocument.from_domain(participant).to_mongo_record()
        result = self._col.insert_one(payload, session=self._session)
        return participant.model_copy(update={"id": str(result.inserted_id)})
