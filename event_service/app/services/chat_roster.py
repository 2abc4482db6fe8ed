"""이벤트 채팅 참가자 명단.

events.chat_participant_count 는 이 클래스만 갱신한다. 실제로 추가된 참가자 수만큼만
카운터를 올리므로, 이미 명단에 있는 유저를 다시 넣어도 카운터가 변하지 않는다.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import Depends
from pymongo.client_session import ClientSession
from pymongo.database import Database

from common.mongo.client import get_database
from common.mongo.session import get_mongo_session

from ..models.event import ChatParticipant, ChatParticipantRole
from ..repositories.event_repository import (
    ChatParticipantRepository,
    EventRepository,
)
from ..repositories.interfaces import (
    ChatParticipantRepositoryInterface,
    EventRepositoryInterface,
)


logger = logging.getLogger(__name__)


class ChatRoster:
    def __init__(
        self,
        participant_repo: ChatParticipantRepositoryInterface,
        event_repo: EventRepositoryInterface,
    ) -> None:
        self._participant_repo = participant_repo
        self._event_repo = event_repo

    def join(
        self,
        event_id: str,
        members: list[tuple[str, ChatParticipantRole, datetime | None]],
    ) -> int:
        """(user_code, role, joined_at) 목록 중 아직 없는 유저만 추가하고 추가된 수를 반환한다.

        joined_at 이 None 이면 현재 시각을 쓴다.
        """
        now = datetime.now(timezone.utc)
        inserted = 0
        for user_code, role, joined_at in members:
            if self._participant_repo.find(event_id, user_code) is not None:
                continue
            self._participant_repo.insert(
                ChatParticipant(
                    event_id=event_id,
                    user_code=user_code,
                    role=role,
                    joined_at=joined_at or now,
                    created_at=now,
                    updated_at=now,
                )
            )
            inserted += 1

        if inserted:
            self._event_repo.increment_chat_participant_count(event_id, inserted)
            logger.info(
                "chat participants added",
                extra={"event_id": event_id, "amount": inserted},
            )
        return inserted


def get_chat_participant_repository(
    db: Database = Depends(get_database),
    session: ClientSession = Depends(get_mongo_session),
) -> ChatParticipantRepositoryInterface:
    """FastAPI DI용 ChatParticipantRepository 팩토리."""

    return ChatParticipantRepository(db, session)


def get_event_repository(
    db: Database = Depends(get_database),
    session: ClientSession = Depends(get_mongo_session),
) -> EventRepositoryInterface:
    """FastAPI DI용 EventRepository 팩토리."""

    return EventRepository(db, session)


def get_chat_roster(
    participant_repo: ChatParticipantRepositoryInterface = Depends(
        get_chat_participant_repository
    ),
    event_repo: EventRepositoryInterface = Depends(get_event_repository),
) -> ChatRoster:
    """FastAPI DI용 ChatRoster 팩토리."""

    return ChatRoster(participant_repo, event_repo)
