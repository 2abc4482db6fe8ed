from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from event_service.app.exceptions import (
    ForbiddenError,
    InsufficientCreditsError,
    InvalidRequestError,
    InvalidStateError,
    NotFoundError,
)
from event_service.app.models.application import ApplicationDecision, ApplicationStatus
from event_service.app.models.audit import AuditEventType
from event_service.app.models.event import ChatParticipantRole, EventCreate
from event_service.app.services.events_service import (
    validate_age_range,
    validate_event_timing,
)
from event_service.tests.fakes import ServiceWorld


OWNER = "user-owner"


def _build_fixture() -> tuple[ServiceWorld, str]:
    world = ServiceWorld()
    world.add_user(OWNER, name="Owner")
    world.ledger.initialize(OWNER)
    room = world.add_room(OWNER)
    assert room.id is not None
    return world, room.id


def _event_create(room_id: str, **overrides) -> EventCreate:
    data = {
        "room_id": room_id,
        "title": "Friday Drinks",
        "start_time": datetime.now(timezone.utc) + timedelta(days=2),
        "max_guests": 2,
    }
    data.update(overrides)
    return EventCreate(**data)


def test_create_event_holds_credits_and_joins_owner_to_chat() -> None:
    world, room_id = _build_fixture()

    event = world.events_service.create_event(OWNER, _event_create(room_id))

    assert event.id is not None
    assert event.chat_participant_count == 1
    assert event.room_title == "Rooftop Bar"
    assert world.balance(OWNER) == (2, 2)
    stored = world.events.find_by_id(event.id)
    assert stored is not None
    assert stored.chat_participant_count == 1
    [participant] = world.participants.for_event(event.id)
    assert participant.user_code == OWNER
    assert participant.role == ChatParticipantRole.OWNER
    assert world.audit_events.events[-1].event_type == AuditEventType.EVENT_CREATED


def test_create_event_uses_default_max_guests() -> None:
    world, room_id = _build_fixture()

    event = world.events_service.create_event(
        OWNER, _event_create(room_id, max_guests=None)
    )

    assert event.max_guests == 1
    assert world.balance(OWNER) == (3, 1)


def test_create_event_with_insufficient_credits_writes_nothing() -> None:
    world, room_id = _build_fixture()

    with pytest.raises(InsufficientCreditsError):
        world.events_service.create_event(OWNER, _event_create(room_id, max_guests=5))

    assert world.events.events == {}
    assert world.balance(OWNER) == (4, 0)
    assert world.participants.participants == []


def test_create_event_requires_room_owner() -> None:
    world, room_id = _build_fixture()
    world.add_user("user-other")
    world.ledger.initialize("user-other")

    with pytest.raises(ForbiddenError, match="Only room owner can create events"):
        world.events_service.create_event("user-other", _event_create(room_id))


def test_create_event_in_missing_or_inactive_room_fails() -> None:
    world, _ = _build_fixture()
    inactive = world.add_room(OWNER, is_active=False)

    with pytest.raises(NotFoundError, match="Room not found"):
        world.events_service.create_event(OWNER, _event_create("missing-room"))
    with pytest.raises(InvalidStateError, match="Room is not active"):
        world.events_service.create_event(OWNER, _event_create(inactive.id or ""))


def test_create_event_fails_when_store_returns_no_id(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    world, room_id = _build_fixture()
    monkeypatch.setattr(world.events, "insert", lambda event: event)

    with pytest.raises(LookupError, match="inserted event has no id"):
        world.events_service.create_event(OWNER, _event_create(room_id))

    assert world.balance(OWNER) == (4, 0)
    assert world.participants.participants == []


def test_create_event_accepts_naive_start_time_as_utc() -> None:
    world, room_id = _build_fixture()
    naive = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(days=3)

    event = world.events_service.create_event(
        OWNER, _event_create(room_id, start_time=naive)
    )

    assert event.start_time is not None
    assert event.start_time.tzinfo is not None


def test_validate_event_timing_rejects_bad_ranges() -> None:
    now = datetime(2030, 1, 1, tzinfo=timezone.utc)

    with pytest.raises(InvalidRequestError, match="End time must be after start time"):
        validate_event_timing(now + timedelta(hours=2), now + timedelta(hours=1), now)
    with pytest.raises(InvalidRequestError, match="Event cannot start in the past"):
        validate_event_timing(now - timedelta(hours=1), None, now)

    validate_event_timing(None, None, now)


def test_validate_age_range() -> None:
    with pytest.raises(InvalidRequestError):
        validate_age_range(30, 25)
    with pytest.raises(InvalidRequestError):
        validate_age_range(-1, None)

    validate_age_range(21, 21)


def test_delete_event_releases_unused_credits_and_cancels_pending() -> None:
    world, room_id = _build_fixture()
    event = world.events_service.create_event(
        OWNER, _event_create(room_id, max_guests=3)
    )
    assert event.id is not None
    for code in ("guest-1", "guest-2"):
        world.add_user(code)
    approved = world.workflow.apply("guest-1", event.id)
    pending = world.workflow.apply("guest-2", event.id)
    world.workflow.respond(OWNER, approved.id or "", ApplicationDecision.APPROVED)

    released = world.events_service.delete_event(OWNER, event.id)

    assert released == 2
    balance = world.ledger.balance(OWNER)
    assert balance.available_credits == 3
    assert balance.held_credits == 0
    assert balance.total_used == 1
    stored = world.events.find_by_id(event.id)
    assert stored is not None and stored.is_active is False
    cancelled = world.applications.find_by_id(pending.id or "")
    assert cancelled is not None and cancelled.status == ApplicationStatus.CANCELLED
    assert (
        world.transactions.created[-1].description
        == "Credits released from deleted event (2 credits)"
    )


def test_delete_event_twice_releases_only_once() -> None:
    world, room_id = _build_fixture()
    event = world.events_service.create_event(OWNER, _event_create(room_id))

    first = world.events_service.delete_event(OWNER, event.id or "")
    second = world.events_service.delete_event(OWNER, event.id or "")

    assert (first, second) == (2, 0)
    assert world.balance(OWNER) == (4, 0)


def test_delete_event_requires_owner() -> None:
    world, room_id = _build_fixture()
    event = world.events_service.create_event(OWNER, _event_create(room_id))

    with pytest.raises(ForbiddenError, match="Only event owner can delete events"):
        world.events_service.delete_event("user-other", event.id or "")
    with pytest.raises(NotFoundError):
        world.events_service.delete_event(OWNER, "missing-event")


def test_full_event_lifecycle_keeps_credits_balanced() -> None:
    # 4 크레딧으로 2명 이벤트 생성 -> 1명 승인 -> 삭제
    world, room_id = _build_fixture()
    world.add_user("guest-1")
    event = world.events_service.create_event(OWNER, _event_create(room_id))
    application = world.workflow.apply("guest-1", event.id or "")

    world.workflow.respond(OWNER, application.id or "", ApplicationDecision.APPROVED)
    world.events_service.delete_event(OWNER, event.id or "")

    balance = world.ledger.balance(OWNER)
    assert balance.available_credits == 3
    assert balance.held_credits == 0
    assert balance.total_used == 1
    stored = world.events.find_by_id(event.id or "")
    assert stored is not None
    assert stored.chat_participant_count == 2
