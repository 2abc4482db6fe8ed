"""서비스 테스트용 메모리 레포지토리.

각 Fake 는 repositories.interfaces 의 Protocol 을 그대로 따른다. 유니크 인덱스가 있는
컬렉션은 Mongo 와 같게 DuplicateKeyError 를 던진다.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from bson import ObjectId
from pymongo.errors import DuplicateKeyError, OperationFailure

from common.eventbus.core import Event as BusEvent
from common.models.user import User, UserRole
from event_service.app.models.application import ApplicationStatus, EventApplication
from event_service.app.models.audit import AuditEvent
from event_service.app.models.credit import (
    CreditAccount,
    CreditHold,
    CreditTransaction,
    HoldStatus,
)
from event_service.app.models.event import ChatParticipant, Connection, Event, Room
from event_service.app.models.refund import RefundRequest, RefundStatus
from event_service.app.services.applications_service import ApplicationWorkflow
from event_service.app.services.audit_trail import AuditTrail
from event_service.app.services.chat_roster import ChatRoster
from event_service.app.services.credit_ledger import CreditLedger
from event_service.app.services.events_service import EventsService
from event_service.app.services.refunds_service import RefundReviewService


def _new_id() -> str:
    return str(ObjectId())


class FakeCreditAccountRepository:
    def __init__(self) -> None:
        self.accounts: dict[str, CreditAccount] = {}

    def find_by_user_code(self, user_code: str) -> CreditAccount | None:
        return self.accounts.get(user_code)

    def insert(self, account: CreditAccount) -> CreditAccount:
        if account.user_code in self.accounts:
            raise DuplicateKeyError("uniq_user_code")
        stored = account.model_copy(update={"id": _new_id()})
        self.accounts[account.user_code] = stored
        return stored

    def update_balances(self, account: CreditAccount) -> CreditAccount:
        if account.user_code not in self.accounts:
            raise LookupError(account.user_code)
        self.accounts[account.user_code] = account
        return account


class FakeCreditHoldRepository:
    def __init__(self) -> None:
        self.holds: dict[str, CreditHold] = {}

    def find_active(self, user_code: str, event_id: str) -> CreditHold | None:
        for hold in self.holds.values():
            if (
                hold.user_code == user_code
                and hold.event_id == event_id
                and hold.status == HoldStatus.ACTIVE
            ):
                return hold
        return None

    def insert(self, hold: CreditHold) -> CreditHold:
        if self.find_active(hold.user_code, hold.event_id) is not None:
            raise DuplicateKeyError("uniq_active_hold_per_event")
        stored = hold.model_copy(update={"id": _new_id()})
        self.holds[stored.id or ""] = stored
        return stored

    def update(self, hold: CreditHold) -> CreditHold:
        self.holds[hold.id or ""] = hold
        return hold

    def list_active_by_user(self, user_code: str) -> list[CreditHold]:
        return [
            h
            for h in self.holds.values()
            if h.user_code == user_code and h.status == HoldStatus.ACTIVE
        ]

    def for_event(self, event_id: str) -> list[CreditHold]:
        return [h for h in self.holds.values() if h.event_id == event_id]


class FakeCreditTransactionRepository:
    def __init__(self) -> None:
        self.created: list[CreditTransaction] = []

    def create(self, tx: CreditTransaction) -> CreditTransaction:
        stored = tx.model_copy(update={"id": _new_id()})
        self.created.append(stored)
        return stored

    def list_by_user(self, user_code: str, limit: int) -> list[CreditTransaction]:
        items = [tx for tx in reversed(self.created) if tx.user_code == user_code]
        return items[:limit]

    def find_by_payment_transaction_id(
        self, payment_transaction_id: str
    ) -> CreditTransaction | None:
        for tx in self.created:
            if tx.payment_transaction_id == payment_transaction_id:
                return tx
        return None


class FakeRoomRepository:
    def __init__(self) -> None:
        self.rooms: dict[str, Room] = {}

    def find_by_id(self, room_id: str) -> Room | None:
        return self.rooms.get(room_id)


class FakeEventRepository:
    def __init__(self) -> None:
        self.events: dict[str, Event] = {}

    def find_by_id(self, event_id: str) -> Event | None:
        return self.events.get(event_id)

    def insert(self, event: Event) -> Event:
        stored = event.model_copy(update={"id": event.id or _new_id()})
        self.events[stored.id or ""] = stored
        return stored

    def deactivate(self, event_id: str) -> bool:
        event = self.events.get(event_id)
        if event is None:
            return False
        self.events[event_id] = event.model_copy(update={"is_active": False})
        return True

    def increment_chat_participant_count(self, event_id: str, delta: int) -> None:
        event = self.events.get(event_id)
        if event is None:
            return
        self.events[event_id] = event.model_copy(
            update={"chat_participant_count": event.chat_participant_count + delta}
        )


class FakeChatParticipantRepository:
    def __init__(self) -> None:
        self.participants: list[ChatParticipant] = []

    def find(self, event_id: str, user_code: str) -> ChatParticipant | None:
        for participant in self.participants:
            if participant.event_id == event_id and participant.user_code == user_code:
                return participant
        return None

    def insert(self, participant: ChatParticipant) -> ChatParticipant:
        if self.find(participant.event_id, participant.user_code) is not None:
            raise DuplicateKeyError("uniq_event_participant")
        stored = participant.model_copy(update={"id": _new_id()})
        self.participants.append(stored)
        return stored

    def for_event(self, event_id: str) -> list[ChatParticipant]:
        return [p for p in self.participants if p.event_id == event_id]


class FakeApplicationRepository:
    def __init__(self) -> None:
        self.applications: dict[str, EventApplication] = {}

    def find_by_id(self, application_id: str) -> EventApplication | None:
        return self.applications.get(application_id)

    def find_by_event_and_applicant(
        self, event_id: str, applicant_code: str
    ) -> EventApplication | None:
        for application in self.applications.values():
            if (
                application.event_id == event_id
                and application.applicant_code == applicant_code
            ):
                return application
        return None

    def insert(self, application: EventApplication) -> EventApplication:
        if (
            self.find_by_event_and_applicant(
                application.event_id, application.applicant_code
            )
            is not None
        ):
            raise DuplicateKeyError("uniq_event_applicant")
        stored = application.model_copy(update={"id": application.id or _new_id()})
        self.applications[stored.id or ""] = stored
        return stored

    def update_status(
        self,
        application_id: str,
        status: ApplicationStatus,
        owner_response: str | None = None,
    ) -> EventApplication | None:
        application = self.applications.get(application_id)
        if application is None:
            return None
        updates: dict[str, object] = {"status": status}
        if owner_response is not None:
            updates["owner_response"] = owner_response
        updated = application.model_copy(update=updates)
        self.applications[application_id] = updated
        return updated

    def count_by_event_and_status(self, event_id: str, status: ApplicationStatus) -> int:
        return sum(
            1
            for a in self.applications.values()
            if a.event_id == event_id and a.status == status
        )

    def list_by_event(
        self, event_id: str, status: ApplicationStatus | None = None
    ) -> list[EventApplication]:
        return [
            a
            for a in reversed(list(self.applications.values()))
            if a.event_id == event_id and (status is None or a.status == status)
        ]

    def list_by_applicant(
        self, applicant_code: str, status: ApplicationStatus | None = None
    ) -> list[EventApplication]:
        return [
            a
            for a in reversed(list(self.applications.values()))
            if a.applicant_code == applicant_code
            and (status is None or a.status == status)
        ]

    def cancel_pending_by_event(self, event_id: str) -> int:
        cancelled = 0
        for application_id, application in list(self.applications.items()):
            if (
                application.event_id == event_id
                and application.status == ApplicationStatus.PENDING
            ):
                self.applications[application_id] = application.model_copy(
                    update={"status": ApplicationStatus.CANCELLED}
                )
                cancelled += 1
        return cancelled


class FakeConnectionRepository:
    def __init__(self) -> None:
        self.connections: list[Connection] = []

    def find_between(self, user_a: str, user_b: str) -> Connection | None:
        for connection in self.connections:
            if {connection.user1_code, connection.user2_code} == {user_a, user_b}:
                return connection
        return None

    def insert(self, connection: Connection) -> Connection:
        stored = connection.model_copy(update={"id": _new_id()})
        self.connections.append(stored)
        return stored


class FakeRefundRequestRepository:
    def __init__(self) -> None:
        self.requests: dict[str, RefundRequest] = {}

    def find_by_id(self, refund_request_id: str) -> RefundRequest | None:
        return self.requests.get(refund_request_id)

    def find_by_application_id(self, application_id: str) -> RefundRequest | None:
        for request in self.requests.values():
            if request.application_id == application_id:
                return request
        return None

    def insert(self, request: RefundRequest) -> RefundRequest:
        if self.find_by_application_id(request.application_id) is not None:
            raise DuplicateKeyError("uniq_application_id")
        stored = request.model_copy(update={"id": request.id or _new_id()})
        self.requests[stored.id or ""] = stored
        return stored

    def update_review(self, request: RefundRequest) -> RefundRequest:
        self.requests[request.id or ""] = request
        return request

    def list_by_user(self, user_code: str) -> list[RefundRequest]:
        return [r for r in reversed(list(self.requests.values())) if r.user_code == user_code]

    def list_by_status(self, status: RefundStatus) -> list[RefundRequest]:
        return [r for r in self.requests.values() if r.status == status]


class FakeUserRepository:
    def __init__(self) -> None:
        self.users: dict[str, User] = {}

    def find_by_user_code(self, user_code: str) -> User | None:
        return self.users.get(user_code)


class FakeAuditEventRepository:
    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    def create(self, event: AuditEvent) -> None:
        self.events.append(event)


class FakeEventBus:
    def __init__(self, log: list[str] | None = None) -> None:
        self.published: list[tuple[str, BusEvent]] = []
        self._log = log if log is not None else []

    def publish(self, topic: str, event: BusEvent) -> None:
        self.published.append((topic, event))
        self._log.append("publish")


class FakeClientSession:
    """트랜잭션 시작/커밋/중단 순서를 log 에 남기는 ClientSession 대역."""

    def __init__(self, log: list[str], fail_commit: bool = False) -> None:
        self.in_transaction = False
        self._log = log
        self._fail_commit = fail_commit

    def __enter__(self) -> FakeClientSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def start_transaction(self) -> None:
        self.in_transaction = True
        self._log.append("start")

    def commit_transaction(self) -> None:
        if self._fail_commit:
            raise OperationFailure("WriteConflict", code=112)
        self.in_transaction = False
        self._log.append("commit")

    def abort_transaction(self) -> None:
        self.in_transaction = False
        self._log.append("abort")


class FakeMongoClient:
    def __init__(self, log: list[str], fail_commit: bool = False) -> None:
        self.sessions: list[FakeClientSession] = []
        self._log = log
        self.fail_commit = fail_commit

    def start_session(self) -> FakeClientSession:
        session = FakeClientSession(self._log, fail_commit=self.fail_commit)
        self.sessions.append(session)
        return session


@dataclass
class ServiceWorld:
    """원장과 세 서비스를 같은 Fake 저장소 위에 묶은 테스트 픽스처."""

    accounts: FakeCreditAccountRepository = field(default_factory=FakeCreditAccountRepository)
    holds: FakeCreditHoldRepository = field(default_factory=FakeCreditHoldRepository)
    transactions: FakeCreditTransactionRepository = field(
        default_factory=FakeCreditTransactionRepository
    )
    rooms: FakeRoomRepository = field(default_factory=FakeRoomRepository)
    events: FakeEventRepository = field(default_factory=FakeEventRepository)
    participants: FakeChatParticipantRepository = field(
        default_factory=FakeChatParticipantRepository
    )
    applications: FakeApplicationRepository = field(default_factory=FakeApplicationRepository)
    connections: FakeConnectionRepository = field(default_factory=FakeConnectionRepository)
    refunds: FakeRefundRequestRepository = field(default_factory=FakeRefundRequestRepository)
    users: FakeUserRepository = field(default_factory=FakeUserRepository)
    audit_events: FakeAuditEventRepository = field(default_factory=FakeAuditEventRepository)

    def __post_init__(self) -> None:
        self.ledger = CreditLedger(
            account_repo=self.accounts,
            hold_repo=self.holds,
            transaction_repo=self.transactions,
        )
        self.roster = ChatRoster(self.participants, self.events)
        self.audit = AuditTrail(self.audit_events)
        self.workflow = ApplicationWorkflow(
            application_repo=self.applications,
            event_repo=self.events,
            user_repo=self.users,
            connection_repo=self.connections,
            ledger=self.ledger,
            roster=self.roster,
            audit=self.audit,
        )
        self.events_service = EventsService(
            room_repo=self.rooms,
            event_repo=self.events,
            application_repo=self.applications,
            ledger=self.ledger,
            roster=self.roster,
            audit=self.audit,
        )
        self.refund_service = RefundReviewService(
            refund_repo=self.refunds,
            event_repo=self.events,
            application_repo=self.applications,
            user_repo=self.users,
            ledger=self.ledger,
            audit=self.audit,
        )

    def add_user(
        self,
        user_code: str,
        *,
        name: str | None = None,
        role: str = UserRole.USER,
        date_of_birth: datetime | None = None,
    ) -> User:
        now = datetime.now(timezone.utc)
        user = User(
            user_code=user_code,
            provider="google",
            provider_sub=f"sub-{user_code}",
            email=f"{user_code}@example.com",
            name=name or user_code,
            profile_image=f"https://cdn.example.com/{user_code}.png",
            role=role,
            date_of_birth=date_of_birth,
            created_at=now,
            updated_at=now,
        )
        self.users.users[user_code] = user
        return user

    def add_room(self, owner_code: str, *, is_active: bool = True) -> Room:
        now = datetime.now(timezone.utc)
        room = Room(
            id=_new_id(),
            owner_code=owner_code,
            title="Rooftop Bar",
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )
        self.rooms.rooms[room.id or ""] = room
        return room

    def add_event(
        self,
        owner_code: str,
        *,
        max_guests: int = 1,
        start_time: datetime | None = None,
        min_age: int | None = None,
        max_age: int | None = None,
        is_active: bool = True,
    ) -> Event:
        """원장을 거치지 않고 이벤트만 직접 넣는다. 홀드가 필요하면 ledger.hold 를 따로 호출한다."""
        now = datetime.now(timezone.utc)
        return self.events.insert(
            Event(
                room_id=_new_id(),
                owner_code=owner_code,
                room_title="Rooftop Bar",
                title="Friday Drinks",
                start_time=start_time or now + timedelta(days=1),
                max_guests=max_guests,
                min_age=min_age,
                max_age=max_age,
                is_active=is_active,
                created_at=now,
                updated_at=now,
            )
        )

    def balance(self, user_code: str) -> tuple[int, int]:
        """(available, held)"""
        b = self.ledger.balance(user_code)
        return b.available_credits, b.held_credits
