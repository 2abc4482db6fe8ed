"""이벤트 생성/삭제.

룸/이벤트 CRUD 전체가 아니라 크레딧 홀드를 만들고 푸는 두 진입점만 제공한다.
생성 시 max_guests 만큼 홀드하고, 삭제 시 남은 홀드를 돌려준다.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import Depends
from pymongo.client_session import ClientSession
from pymongo.database import Database

from common.mongo.client import get_database
from common.mongo.session import get_mongo_session
from common.mongo.types import ensure_utc_datetime

from ..config import AppConfig, get_config
from ..exceptions import (
    ForbiddenError,
    InsufficientCreditsError,
    InvalidRequestError,
    InvalidStateError,
    NotFoundError,
)
from ..models.audit import AuditEventType
from ..models.event import ChatParticipantRole, Event, EventCreate
from ..repositories.event_repository import RoomRepository
from ..repositories.interfaces import (
    ApplicationRepositoryInterface,
    EventRepositoryInterface,
    RoomRepositoryInterface,
)
from .applications_service import get_application_repository
from .audit_trail import AuditTrail, get_audit_trail
from .chat_roster import ChatRoster, get_chat_roster, get_event_repository
from .credit_ledger import CreditLedger, get_credit_ledger


logger = logging.getLogger(__name__)


def validate_event_timing(
    start_time: datetime | None,
    end_time: datetime | None,
    now: datetime | None = None,
) -> None:
    now = now or datetime.now(timezone.utc)
    if start_time is not None and end_time is not None and end_time <= start_time:
        raise InvalidRequestError("End time must be after start time")
    if start_time is not None and start_time < now:
        raise InvalidRequestError("Event cannot start in the past")


def validate_age_range(min_age: int | None, max_age: int | None) -> None:
    if min_age is not None and min_age < 0:
        raise InvalidRequestError("Minimum age cannot be negative")
    if min_age is not None and max_age is not None and min_age > max_age:
        raise InvalidRequestError("Minimum age cannot be greater than maximum age")


class EventsService:
    def __init__(
        self,
        room_repo: RoomRepositoryInterface,
        event_repo: EventRepositoryInterface,
        application_repo: ApplicationRepositoryInterface,
        ledger: CreditLedger,
        roster: ChatRoster,
        audit: AuditTrail,
        default_max_guests: int = 1,
    ) -> None:
        self._room_repo = room_repo
        self._event_repo = event_repo
        self._application_repo = application_repo
        self._ledger = ledger
        self._roster = roster
        self._audit = audit
        self._default_max_guests = default_max_guests

    def create_event(self, owner_code: str, data: EventCreate) -> Event:
        """이벤트를 만들고 max_guests 만큼 크레딧을 홀드한다.

        잔액이 부족하면 아무 것도 쓰기 전에 InsufficientCreditsError 를 던진다.
        """
        room = self._room_repo.find_by_id(data.room_id)
        if room is None:
            raise NotFoundError("Room not found")
        if room.owner_code != owner_code:
            raise ForbiddenError("Only room owner can create events")
        if not room.is_active:
            raise InvalidStateError("Room is not active")

        title = data.title.strip()
        if not title:
            raise InvalidRequestError("Event title is required")

        max_guests = (
            data.max_guests if data.max_guests is not None else self._default_max_guests
        )
        if max_guests < 1:
            raise InvalidRequestError("max_guests must be at least 1")

        start_time = ensure_utc_datetime(data.start_time) if data.start_time else None
        end_time = ensure_utc_datetime(data.end_time) if data.end_time else None
        validate_event_timing(start_time, end_time)
        validate_age_range(data.min_age, data.max_age)

        sufficiency = self._ledger.sufficient_for(owner_code, max_guests)
        if not sufficiency.sufficient:
            raise InsufficientCreditsError(
                required=max_guests, available=sufficiency.available_credits
            )

        now = datetime.now(timezone.utc)
        event = self._event_repo.insert(
            Event(
                room_id=data.room_id,
                owner_code=owner_code,
                room_title=room.title,
                title=title,
                description=data.description,
                start_time=start_time,
                end_time=end_time,
                max_guests=max_guests,
                min_age=data.min_age,
                max_age=data.max_age,
                chat_participant_count=0,
                is_active=True,
                created_at=now,
                updated_at=now,
            )
        )
        if event.id is None:
            raise LookupError(f"inserted event has no id: {title!r}")

        self._ledger.hold(owner_code, event.id, max_guests, event_title=title)
        self._roster.join(event.id, [(owner_code, ChatParticipantRole.OWNER, now)])
        self._audit.record(
            AuditEventType.EVENT_CREATED,
            owner_code,
            metadata={
                "event_id": event.id,
                "room_id": data.room_id,
                "max_guests": max_guests,
            },
        )
        logger.info(
            "event created",
            extra={"user_code": owner_code, "event_id": event.id, "amount": max_guests},
        )
        return event.model_copy(update={"chat_participant_count": 1})

    def delete_event(self, owner_code: str, event_id: str) -> int:
        """이벤트를 비활성화하고 pending 신청을 취소한 뒤 남은 홀드를 돌려준다.

        돌려준 크레딧 수를 반환한다. 홀드가 이미 풀려 있으면 0.
        """
        event = self._event_repo.find_by_id(event_id)
        if event is None:
            raise NotFoundError("Event not found")
        if event.owner_code != owner_code:
            raise ForbiddenError("Only event owner can delete events")

        self._event_repo.deactivate(event_id)
        cancelled = self._application_repo.cancel_pending_by_event(event_id)
        released = self._ledger.release(
            owner_code,
            event_id,
            throw_on_missing_hold=False,
            released_from="deleted",
        )
        logger.info(
            "event deleted (cancelled %d pending applications)",
            cancelled,
            extra={"user_code": owner_code, "event_id": event_id, "amount": released},
        )
        return released


def get_room_repository(
    db: Database = Depends(get_database),
    session: ClientSession = Depends(get_mongo_session),
) -> RoomRepositoryInterface:
    """FastAPI DI용 RoomRepository 팩토리."""

    return RoomRepository(db, session)


def get_events_service(
    room_repo: RoomRepositoryInterface = Depends(get_room_repository),
    event_repo: EventRepositoryInterface = Depends(get_event_repository),
    application_repo: ApplicationRepositoryInterface = Depends(
        get_application_repository
    ),
    ledger: CreditLedger = Depends(get_credit_ledger),
    roster: ChatRoster = Depends(get_chat_roster),
    audit: AuditTrail = Depends(get_audit_trail),
    config: AppConfig = Depends(get_config),
) -> EventsService:
    """FastAPI DI용 EventsService 팩토리."""

    return EventsService(
        room_repo=room_repo,
        event_repo=event_repo,
        application_repo=application_repo,
        ledger=ledger,
        roster=roster,
        audit=audit,
        default_max_guests=config.credits.default_max_guests,
    )
