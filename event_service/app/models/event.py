"""이벤트/룸/채팅 참가자/커넥션 도메인 모델.

룸과 이벤트의 일반 CRUD 는 이 서비스 범위 밖이다. 여기서는 크레딧 홀드와
참가 신청 흐름에 필요한 필드만 다룬다.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel


class Room(BaseModel):
    id: str | None = None
    owner_code: str
    title: str
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class Event(BaseModel):
    """룸에서 열리는 이벤트.

    - max_guests 는 승인 가능한 참가자 수이자 생성 시 홀드하는 크레딧 수다.
    - chat_participant_count 는 ChatRoster 만 갱신하는 비정규화 카운터다.
    """

    id: str | None = None
    room_id: str
    owner_code: str
    room_title: str
    title: str
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    max_guests: int = 1
    min_age: int | None = None
    max_age: int | None = None
    chat_participant_count: int = 0
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class EventCreate(BaseModel):
    """이벤트 생성 입력."""

    room_id: str
    title: str
    description: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    max_guests: int | None = None
    min_age: int | None = None
    max_age: int | None = None


class ChatParticipantRole(StrEnum):
    OWNER = "owner"
    PARTICIPANT = "participant"


class ChatParticipant(BaseModel):
    id: str | None = None
    event_id: str
    user_code: str
    role: ChatParticipantRole
    joined_at: datetime
    created_at: datetime
    updated_at: datetime


class ConnectionStatus(StrEnum):
    ACTIVE = "active"


class Connection(BaseModel):
    """승인으로 맺어진 두 유저의 관계. 방향이 없으며 한 쌍에 하나만 존재한다."""

    id: str | None = None
    user1_code: str
    user2_code: str
    status: ConnectionStatus = ConnectionStatus.ACTIVE
    connected_via_event_id: str
    user1_display_name: str | None = None
    user2_display_name: str | None = None
    user1_profile_image: str | None = None
    user2_profile_image: str | None = None
    created_at: datetime
    updated_at: datetime
